import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession


@pytest.mark.asyncio
async def test_admin_creates_class_and_syncs_homeroom_teacher(
    client: AsyncClient, auth, db_session: AsyncSession, admin, teacher
) -> None:
    payload = {"name": "Grade 6A", "code": "g6a", "homeroom_teacher_id": str(teacher.id)}
    resp = await client.post("/api/v1/classes", json=payload, headers=auth(admin))
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["code"] == "G6A"
    assert data["max_students"] == 30
    assert data["student_count"] == 0

    await db_session.refresh(teacher)
    assert str(teacher.teaching_class_id) == data["id"]

    dup = await client.post("/api/v1/classes", json=dict(payload, homeroom_teacher_id=None), headers=auth(admin))
    assert dup.status_code == 409


@pytest.mark.asyncio
async def test_homeroom_teacher_must_be_a_teacher(client: AsyncClient, auth, admin, make_user) -> None:
    student = await make_user("student")
    resp = await client.post(
        "/api/v1/classes",
        json={"name": "Grade 6B", "code": "G6B", "homeroom_teacher_id": str(student.id)},
        headers=auth(admin),
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "User is not a teacher"


@pytest.mark.asyncio
async def test_class_writes_are_admin_only(client: AsyncClient, auth, teacher, make_class) -> None:
    resp = await client.post("/api/v1/classes", json={"name": "X", "code": "X1"}, headers=auth(teacher))
    assert resp.status_code == 403
    assert resp.json() == {
        "status": "fail",
        "message": "User role teacher is not authorized to access this route",
    }

    cls = await make_class()
    listing = await client.get("/api/v1/classes", headers=auth(teacher))
    assert listing.status_code == 200
    assert [c["id"] for c in listing.json()["data"]] == [str(cls.id)]


@pytest.mark.asyncio
async def test_reassigning_homeroom_teacher(
    client: AsyncClient, auth, db_session: AsyncSession, admin, make_user, make_class
) -> None:
    first = await make_user("teacher")
    second = await make_user("teacher")
    cls = await make_class(first)

    resp = await client.put(
        f"/api/v1/classes/{cls.id}", json={"homeroom_teacher_id": str(second.id)}, headers=auth(admin)
    )
    assert resp.status_code == 200
    await db_session.refresh(first)
    await db_session.refresh(second)
    assert first.teaching_class_id is None
    assert second.teaching_class_id == cls.id

    other = await make_class(first)
    busy = await client.put(
        f"/api/v1/classes/{other.id}", json={"homeroom_teacher_id": str(second.id)}, headers=auth(admin)
    )
    assert busy.status_code == 409


@pytest.mark.asyncio
async def test_roster_visibility(client: AsyncClient, auth, teacher, make_user, make_class, enroll) -> None:
    cls = await make_class(teacher)
    member = await make_user("student")
    outsider = await make_user("student")
    await enroll(member, cls)

    for user in (teacher, member):
        resp = await client.get(f"/api/v1/classes/{cls.id}/students", headers=auth(user))
        assert resp.status_code == 200
        assert [s["id"] for s in resp.json()["data"]] == [str(member.id)]

    denied = await client.get(f"/api/v1/classes/{cls.id}/students", headers=auth(outsider))
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_user_administration(client: AsyncClient, auth, admin, make_user) -> None:
    resp = await client.post(
        "/api/v1/users",
        json={
            "first_name": "Tom",
            "last_name": "Teach",
            "email": "tom@example.com",
            "password": "StrongPass123",
            "role": "teacher",
        },
        headers=auth(admin),
    )
    assert resp.status_code == 201
    user_id = resp.json()["data"]["id"]

    teachers = await client.get("/api/v1/users", params={"role": "teacher"}, headers=auth(admin))
    assert [u["id"] for u in teachers.json()["data"]] == [user_id]

    deactivated = await client.delete(f"/api/v1/users/{user_id}", headers=auth(admin))
    assert deactivated.status_code == 200
    fetched = await client.get(f"/api/v1/users/{user_id}", headers=auth(admin))
    assert fetched.json()["data"]["is_active"] is False

    student = await make_user("student")
    assert (await client.get("/api/v1/users", headers=auth(student))).status_code == 403
    assert (await client.get(f"/api/v1/users/{student.id}", headers=auth(admin))).status_code == 200


@pytest.mark.asyncio
async def test_homeroom_assignment_helpers(client: AsyncClient, auth, admin, teacher, make_user, make_class) -> None:
    await make_class(teacher, name="Staffed")
    orphan = await make_class(name="Orphan")
    await make_class(name="Archived", is_active=False)
    free_teacher = await make_user("teacher")

    classes = await client.get("/api/v1/classes/without-teacher", headers=auth(admin))
    assert classes.status_code == 200
    assert [c["id"] for c in classes.json()["data"]] == [str(orphan.id)]

    teachers = await client.get("/api/v1/classes/unassigned-teachers", headers=auth(admin))
    assert [u["id"] for u in teachers.json()["data"]] == [str(free_teacher.id)]

    assert (await client.get("/api/v1/classes/without-teacher", headers=auth(teacher))).status_code == 403
