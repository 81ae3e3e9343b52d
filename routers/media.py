"""
Media Upload and Review APIs.
"""
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User, UserRole
from auth.dependencies import get_db_session, get_storage, get_current_user, require_admin
from services.media_service import MediaService
from services.audit_service import AuditService
from core.exceptions import ValidationError
from core.responses import success_response
from core.serializers import media_to_dict
import config


router = APIRouter(prefix="/api/media", tags=["media"])

UPLOAD_CHUNK_SIZE = 1024 * 1024


async def read_upload(file: UploadFile) -> bytes:
    """Read an upload in chunks, stopping as soon as it passes MAX_UPLOAD_SIZE_MB."""
    max_bytes = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    chunks = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise ValidationError(f"File size exceeds {config.MAX_UPLOAD_SIZE_MB}MB limit")
        chunks.append(chunk)
    return b"".join(chunks)


class MediaReview(BaseModel):
    """Review request: status is "approved" or "rejected"."""
    media_id: Optional[str] = None
    status: Optional[str] = None
    admin_notes: Optional[str] = None


@router.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_media(
    request: Request,
    file: Optional[UploadFile] = File(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """
    Upload a photo or video. It stays pending until an admin reviews it.
    """
    content = await read_upload(file) if file is not None else b""

    media = MediaService.upload_media(
        db,
        storage,
        user_id=current_user.id,
        content=content,
        original_filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        description=description,
    )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="media_upload",
        user_id=current_user.id,
        resource_type="media",
        resource_id=media.id,
        details={"file_size": media.file_size, "media_type": media.media_type.value}
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=success_response(data=media_to_dict(media, storage), message="File uploaded successfully")
    )


@router.get("")
async def list_media(
    status_filter: Optional[str] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """
    List media. Admins see all uploads, everyone else only their own.
    """
    media = MediaService.list_media(
        db,
        user_id=current_user.id,
        is_admin=current_user.role == UserRole.ADMIN,
        status=status_filter,
    )
    return success_response(data=[media_to_dict(m, storage) for m in media])


@router.get("/my")
async def my_media(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    media = MediaService.list_for_user(db, current_user.id)
    return success_response(data=[media_to_dict(m, storage) for m in media])


@router.get("/pending")
async def pending_media(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Review queue. Admin only."""
    media = MediaService.list_pending(db)
    return success_response(data=[media_to_dict(m, storage) for m in media])


@router.post("/review")
async def review_media(
    request_data: MediaReview,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Approve or reject pending media. Rejected files are removed from storage. Admin only."""
    media = MediaService.review_media(
        db,
        storage,
        admin_id=current_user.id,
        media_id=request_data.media_id,
        decision=request_data.status,
        admin_notes=request_data.admin_notes,
    )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="media_review",
        user_id=current_user.id,
        resource_type="media",
        resource_id=media.id,
        details={"status": media.status.value}
    )

    return success_response(
        data=media_to_dict(media, storage),
        message=f"Media {media.status.value} successfully"
    )


@router.delete("/{media_id}")
async def delete_media(
    media_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Delete media. Owner or admin."""
    MediaService.delete_media(db, storage, current_user.id, current_user.role, media_id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="media_delete",
        user_id=current_user.id,
        resource_type="media",
        resource_id=media_id
    )

    return success_response(message="Media deleted successfully")
