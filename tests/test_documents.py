from pathlib import Path
from uuid import UUID

import pytest
from fastapi import Depends
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.api.v1.documents.service import DocumentService, get_document_service
from schoolhub.core.models import Document
from schoolhub.db.session import get_db
from schoolhub.main import app

PDF = ("notes.pdf", b"%PDF-1.4 lesson notes", "application/pdf")


@pytest.fixture()
def upload_dir(tmp_path: Path, db_session: AsyncSession) -> Path:
    async def override(db: AsyncSession = Depends(get_db)) -> DocumentService:
        return DocumentService(db, tmp_path, max_bytes=1024)

    app.dependency_overrides[get_document_service] = override
    return tmp_path / "documents"


async def _upload(client: AsyncClient, headers: dict, class_id, file=PDF, title="Week 1"):
    return await client.post(
        "/api/v1/documents",
        data={"class_id": str(class_id), "title": title, "description": "Reading for week 1"},
        files={"file": file},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_upload_download_and_delete(
    client: AsyncClient, auth, upload_dir: Path, teacher, make_user, make_class, enroll
) -> None:
    cls = await make_class(teacher)
    student = await make_user("student")
    await enroll(student, cls)

    resp = await _upload(client, auth(teacher), cls.id)
    assert resp.status_code == 201
    doc = resp.json()["data"]
    assert doc["file_name"] == "notes.pdf"
    assert doc["file_size"] == len(PDF[1])
    stored = list(upload_dir.iterdir())
    assert len(stored) == 1
    assert stored[0].suffix == ".pdf"

    download = await client.get(f"/api/v1/documents/{doc['id']}/download", headers=auth(student))
    assert download.status_code == 200
    assert download.content == PDF[1]

    listing = await client.get(
        "/api/v1/documents", params={"class_id": str(cls.id), "search": "week"}, headers=auth(student)
    )
    assert [d["id"] for d in listing.json()["data"]] == [doc["id"]]

    deleted = await client.delete(f"/api/v1/documents/{doc['id']}", headers=auth(teacher))
    assert deleted.status_code == 200
    assert list(upload_dir.iterdir()) == []
    assert (await client.get(f"/api/v1/documents/{doc['id']}", headers=auth(teacher))).status_code == 404


@pytest.mark.asyncio
async def test_upload_rejections(client: AsyncClient, auth, upload_dir: Path, teacher, make_user, make_class) -> None:
    cls = await make_class(teacher)

    other = await make_user("teacher")
    assert (await _upload(client, auth(other), cls.id)).status_code == 403

    exe = ("virus.exe", b"MZ", "application/x-msdownload")
    bad_type = await _upload(client, auth(teacher), cls.id, file=exe)
    assert bad_type.status_code == 400
    assert bad_type.json()["status"] == "fail"

    big = ("big.txt", b"a" * 2048, "text/plain")
    too_big = await _upload(client, auth(teacher), cls.id, file=big)
    assert too_big.status_code == 400
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_failed_metadata_write_removes_file(
    client: AsyncClient, auth, upload_dir: Path, db_session: AsyncSession, teacher, make_class, monkeypatch
) -> None:
    cls = await make_class(teacher)

    async def failing_commit():
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(db_session, "commit", failing_commit)
    resp = await _upload(client, auth(teacher), cls.id)

    assert resp.status_code == 500
    assert resp.json() == {"status": "error", "message": "Internal server error"}
    assert list(upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_visibility_and_ownership(
    client: AsyncClient, auth, upload_dir: Path, db_session: AsyncSession, teacher, make_user, make_class
) -> None:
    cls = await make_class(teacher)
    outsider = await make_user("student")
    doc_id = (await _upload(client, auth(teacher), cls.id)).json()["data"]["id"]

    assert (await client.get(f"/api/v1/documents/{doc_id}", headers=auth(outsider))).status_code == 403
    assert (
        await client.get("/api/v1/documents", params={"class_id": str(cls.id)}, headers=auth(outsider))
    ).status_code == 403

    other_teacher = await make_user("teacher")
    rename = await client.put(f"/api/v1/documents/{doc_id}", json={"title": "Mine"}, headers=auth(other_teacher))
    assert rename.status_code == 403

    renamed = await client.put(f"/api/v1/documents/{doc_id}", json={"title": "Week 1 (rev)"}, headers=auth(teacher))
    assert renamed.json()["data"]["title"] == "Week 1 (rev)"

    row = await db_session.get(Document, UUID(doc_id))
    assert row.is_active is True
