"""Class documents: file on local disk plus a metadata row."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import UUID

from fastapi import Depends, UploadFile, status
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolhub.auth import policies
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.clock import Clock, utcnow
from schoolhub.core.config import settings
from schoolhub.core.exceptions import ForbiddenError, NotFoundError, ServiceError
from schoolhub.core.models import Document, SchoolClass
from schoolhub.core.service import BaseService
from schoolhub.core.storage import (
    ALLOWED_DOCUMENT_TYPES,
    FileTooLargeError,
    remove_file,
    save_upload_file,
    unique_filename,
)
from schoolhub.db.session import get_db

from .schemas import DocumentResponse, DocumentUpdate

logger = logging.getLogger(__name__)


class DocumentService(BaseService):
    def __init__(
        self,
        db: AsyncSession,
        upload_dir: Path,
        max_bytes: int,
        now: Clock = utcnow,
    ) -> None:
        super().__init__(db, now)
        self.documents_dir = Path(upload_dir) / "documents"
        self.max_bytes = max_bytes

    async def _get_active(self, document_id: UUID) -> Document:
        doc = await self.db.get(Document, document_id)
        if not doc or not doc.is_active:
            raise NotFoundError("Document not found")
        return doc

    async def _get_owned(self, current_user: CurrentUser, document_id: UUID) -> Document:
        doc = await self._get_active(document_id)
        if not policies.can_modify_document(current_user, doc):
            raise ForbiddenError("You are not authorized to modify this document")
        return doc

    async def _get_visible(self, current_user: CurrentUser, document_id: UUID) -> Document:
        doc = await self._get_active(document_id)
        if not policies.can_view_document(current_user, doc, await self.student_class_id(current_user)):
            raise ForbiddenError("Not allowed to view this document")
        return doc

    async def upload(
        self,
        current_user: CurrentUser,
        class_id: UUID,
        title: str,
        description: str,
        upload: UploadFile,
    ) -> DocumentResponse:
        school_class = await self.db.get(SchoolClass, class_id)
        if not school_class:
            raise NotFoundError("Class not found")
        if not policies.can_manage_class(current_user, school_class):
            raise ForbiddenError("You are not authorized to upload documents for this class")
        if upload.content_type not in ALLOWED_DOCUMENT_TYPES:
            raise ServiceError(
                "Invalid file type. Only documents, images, and text files are allowed.",
                status.HTTP_400_BAD_REQUEST,
            )

        destination = self.documents_dir / unique_filename(upload.filename)
        try:
            size = await save_upload_file(upload, destination, self.max_bytes)
        except FileTooLargeError as e:
            raise ServiceError(str(e), status.HTTP_400_BAD_REQUEST)

        doc = Document(
            title=title.strip(),
            description=description,
            class_id=school_class.id,
            teacher_id=current_user.id,
            file_name=upload.filename or destination.name,
            file_path=str(destination),
            file_size=size,
            mime_type=upload.content_type,
            is_active=True,
        )
        self.db.add(doc)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            # No row points at the file; drop it
            remove_file(destination)
            logger.exception("Failed to store document metadata for %s", destination)
            raise ServiceError("Failed to save document", status.HTTP_500_INTERNAL_SERVER_ERROR)
        await self.db.refresh(doc)
        logger.info("Document %s uploaded to class %s (%s bytes)", doc.id, doc.class_id, size)
        return DocumentResponse.model_validate(doc)

    async def get_document(self, current_user: CurrentUser, document_id: UUID) -> DocumentResponse:
        return DocumentResponse.model_validate(await self._get_visible(current_user, document_id))

    async def get_download(self, current_user: CurrentUser, document_id: UUID) -> Tuple[Path, Document]:
        doc = await self._get_visible(current_user, document_id)
        path = Path(doc.file_path)
        if not path.is_file():
            raise NotFoundError("File not found")
        return path, doc

    async def list_documents(
        self, current_user: CurrentUser, class_id: UUID, search: Optional[str] = None
    ) -> List[DocumentResponse]:
        school_class = await self.db.get(SchoolClass, class_id)
        if not school_class:
            raise NotFoundError("Class not found")
        if not policies.can_view_class(current_user, school_class, await self.student_class_id(current_user)):
            raise ForbiddenError("Not allowed to view documents of this class")
        stmt = select(Document).where(Document.class_id == class_id, Document.is_active.is_(True))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Document.title.ilike(pattern), Document.description.ilike(pattern)))
        result = await self.db.execute(stmt.order_by(Document.created_at.desc()))
        return [DocumentResponse.model_validate(d) for d in result.scalars().all()]

    async def list_my_documents(self, current_user: CurrentUser) -> List[DocumentResponse]:
        result = await self.db.execute(
            select(Document)
            .where(Document.teacher_id == current_user.id, Document.is_active.is_(True))
            .order_by(Document.created_at.desc())
        )
        return [DocumentResponse.model_validate(d) for d in result.scalars().all()]

    async def update_document(
        self, current_user: CurrentUser, document_id: UUID, payload: DocumentUpdate
    ) -> DocumentResponse:
        doc = await self._get_owned(current_user, document_id)
        if payload.title is not None:
            doc.title = payload.title.strip()
        if payload.description is not None:
            doc.description = payload.description
        await self.db.commit()
        await self.db.refresh(doc)
        return DocumentResponse.model_validate(doc)

    async def delete_document(self, current_user: CurrentUser, document_id: UUID) -> None:
        doc = await self._get_owned(current_user, document_id)
        doc.is_active = False
        await self.db.commit()
        remove_file(Path(doc.file_path))
        logger.info("Document %s deleted", document_id)


def get_document_service(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db, Path(settings.upload_dir), settings.max_upload_size_mb * 1024 * 1024)
