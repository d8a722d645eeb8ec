from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse

from schoolhub.auth.dependencies import get_current_user
from schoolhub.auth.rbac import require_roles
from schoolhub.auth.schemas import CurrentUser
from schoolhub.core.enums import UserRole
from schoolhub.core.exceptions import ServiceError
from schoolhub.core.responses import Envelope, success

from .schemas import DocumentResponse, DocumentUpdate
from .service import DocumentService, get_document_service

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])


@router.post("", response_model=Envelope[DocumentResponse], status_code=status.HTTP_201_CREATED)
async def upload_document(
    class_id: UUID = Form(...),
    title: str = Form(..., min_length=1, max_length=200),
    description: str = Form(..., min_length=1),
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: DocumentService = Depends(get_document_service),
):
    try:
        doc = await service.upload(current_user, class_id, title, description, file)
        return success(doc, "Document uploaded successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=Envelope[List[DocumentResponse]])
async def list_documents(
    class_id: UUID = Query(...),
    search: Optional[str] = Query(None, description="Search in title and description"),
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    try:
        return success(await service.list_documents(current_user, class_id, search))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/me", response_model=Envelope[List[DocumentResponse]])
async def list_my_documents(
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: DocumentService = Depends(get_document_service),
):
    return success(await service.list_my_documents(current_user))


@router.get("/{document_id}", response_model=Envelope[DocumentResponse])
async def get_document(
    document_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    try:
        return success(await service.get_document(current_user, document_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{document_id}/download")
async def download_document(
    document_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    try:
        path, doc = await service.get_download(current_user, document_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return FileResponse(path, media_type=doc.mime_type, filename=doc.file_name)


@router.put("/{document_id}", response_model=Envelope[DocumentResponse])
async def update_document(
    document_id: UUID,
    payload: DocumentUpdate,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: DocumentService = Depends(get_document_service),
):
    try:
        return success(await service.update_document(current_user, document_id, payload), "Document updated successfully")
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{document_id}", response_model=Envelope[None])
async def delete_document(
    document_id: UUID,
    current_user: CurrentUser = Depends(require_roles(UserRole.TEACHER)),
    service: DocumentService = Depends(get_document_service),
):
    try:
        await service.delete_document(current_user, document_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(message="Document deleted successfully")
