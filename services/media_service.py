"""
Media review pipeline.

    pending --(admin approves)--> approved
    pending --(admin rejects)---> rejected

Approved and rejected are terminal. The stored object lives exactly as long
as its metadata row: rejecting or deleting media removes the object too.
Object removal is best-effort; the metadata change is authoritative and is
never blocked or reverted by a storage failure.
"""
from datetime import datetime
from typing import Optional, List

from sqlalchemy.orm import Session

from database.models import MediaUpload, MediaStatus, MediaType, Nominee, UserRole
from database.connection import commit_or_raise
from storage.s3_paths import generate_media_filename, media_object_key
from core.exceptions import (
    MissingField, ValidationError, InvalidTransition, NotFound, Forbidden
)
from core.logger import logger
import config


def media_type_for_content_type(content_type: Optional[str]) -> MediaType:
    """image/* -> photo, video/* -> video; anything else is rejected."""
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return MediaType.PHOTO
    if content_type.startswith("video/"):
        return MediaType.VIDEO
    raise ValidationError("Only image and video files are allowed")


def parse_status(value: Optional[str]) -> Optional[MediaStatus]:
    if value is None or value == "":
        return None
    try:
        return MediaStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


class MediaService:
    """Service for media upload records and their review."""

    @staticmethod
    def get_media(db: Session, media_id: str) -> Optional[MediaUpload]:
        """Get media by ID."""
        return db.query(MediaUpload).filter(MediaUpload.id == media_id).first()

    @staticmethod
    def _remove_object(storage, key: str) -> bool:
        """Best-effort object deletion. Failures are logged, never raised."""
        try:
            storage.delete_file(key)
            return True
        except Exception as e:
            logger.error(f"Storage delete failed for {key}; object left orphaned: {e}", exc_info=True)
            return False

    @staticmethod
    def create_metadata(
        db: Session,
        user_id: Optional[str],
        filename: Optional[str],
        original_filename: Optional[str],
        file_path: Optional[str],
        media_type: Optional[MediaType],
        file_size: Optional[int],
        description: Optional[str] = None
    ) -> MediaUpload:
        """
        Record metadata for an object already placed in the store at
        ``file_path``. Status is always pending.

        Raises:
            MissingField: any required field absent
        """
        required = {
            "user_id": user_id,
            "filename": filename,
            "original_filename": original_filename,
            "file_path": file_path,
            "media_type": media_type,
            "file_size": file_size,
        }
        missing = [name for name, value in required.items() if value is None or value == ""]
        if missing:
            raise MissingField(f"Missing required fields: {', '.join(missing)}")

        media = MediaUpload(
            user_id=user_id,
            filename=filename,
            original_filename=original_filename,
            file_path=file_path,
            media_type=MediaType(media_type),
            file_size=file_size,
            description=description or "",
            status=MediaStatus.PENDING,
        )
        db.add(media)
        commit_or_raise(db)
        logger.info(f"Created media record {media.id} for user {user_id} ({file_path})")
        return media

    @staticmethod
    def upload_media(
        db: Session,
        storage,
        user_id: str,
        content: bytes,
        original_filename: Optional[str],
        content_type: Optional[str],
        description: Optional[str] = None
    ) -> MediaUpload:
        """
        Store an uploaded file and record it as pending.

        Raises:
            ValidationError: empty, oversized, or non image/video file
        """
        if not content:
            raise ValidationError("No file uploaded")

        max_bytes = config.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationError(f"File size exceeds {config.MAX_UPLOAD_SIZE_MB}MB limit")

        media_type = media_type_for_content_type(content_type)
        original_name = original_filename or "file"
        filename = generate_media_filename(original_name)
        key = media_object_key(user_id, filename)

        storage.upload_bytes(key, content, content_type=content_type or "application/octet-stream")

        try:
            return MediaService.create_metadata(
                db,
                user_id=user_id,
                filename=filename,
                original_filename=original_name,
                file_path=key,
                media_type=media_type,
                file_size=len(content),
                description=description,
            )
        except Exception:
            # No row will ever own the object
            MediaService._remove_object(storage, key)
            raise

    @staticmethod
    def review_media(
        db: Session,
        storage,
        admin_id: str,
        media_id: Optional[str],
        decision: Optional[str],
        admin_notes: Optional[str] = None
    ) -> MediaUpload:
        """
        Approve or reject pending media.

        Raises:
            MissingField: media id or decision absent
            ValidationError: decision not approved/rejected
            NotFound: unknown media
            InvalidTransition: media already reviewed
        """
        if not media_id or not decision:
            raise MissingField("Media ID and status are required")

        if decision not in (MediaStatus.APPROVED.value, MediaStatus.REJECTED.value):
            raise ValidationError("Status must be approved or rejected")
        new_status = MediaStatus(decision)

        media = MediaService.get_media(db, media_id)
        if media is None:
            raise NotFound("Media not found")

        # Conditional on the stored status, so only one concurrent review wins
        updated = db.query(MediaUpload).filter(
            MediaUpload.id == media_id,
            MediaUpload.status == MediaStatus.PENDING
        ).update({
            MediaUpload.status: new_status,
            MediaUpload.admin_notes: admin_notes,
            MediaUpload.reviewed_by: admin_id,
            MediaUpload.reviewed_at: datetime.utcnow(),
        }, synchronize_session=False)

        if updated != 1:
            db.rollback()
            media = MediaService.get_media(db, media_id)
            if media is None:
                raise NotFound("Media not found")
            raise InvalidTransition(f"Media has already been {media.status.value}")

        db.commit()
        db.refresh(media)
        logger.info(f"Media {media_id} {new_status.value} by {admin_id}")

        if new_status == MediaStatus.REJECTED:
            MediaService._remove_object(storage, media.file_path)

        return media

    @staticmethod
    def delete_media(db: Session, storage, actor_id: str, actor_role: UserRole, media_id: str) -> None:
        """
        Delete media owned by the actor (or any media, for admins).

        Nominees linking to it are unlinked in the same transaction.

        Raises:
            NotFound: unknown media
            Forbidden: actor is neither admin nor owner
        """
        media = MediaService.get_media(db, media_id)
        if media is None:
            raise NotFound("Media not found")

        if actor_role != UserRole.ADMIN and media.user_id != actor_id:
            raise Forbidden("Not authorized to delete this media")

        MediaService._remove_object(storage, media.file_path)

        db.query(Nominee).filter(Nominee.linked_media_id == media_id).update(
            {Nominee.linked_media_id: None}, synchronize_session=False
        )
        db.delete(media)
        db.commit()
        logger.info(f"Media {media_id} deleted by {actor_id}")

    @staticmethod
    def list_for_user(db: Session, user_id: str) -> List[MediaUpload]:
        return db.query(MediaUpload).filter(
            MediaUpload.user_id == user_id
        ).order_by(MediaUpload.created_at.desc()).all()

    @staticmethod
    def list_pending(db: Session) -> List[MediaUpload]:
        """Review queue, oldest first."""
        return db.query(MediaUpload).filter(
            MediaUpload.status == MediaStatus.PENDING
        ).order_by(MediaUpload.created_at).all()

    @staticmethod
    def list_media(
        db: Session,
        user_id: str,
        is_admin: bool,
        status: Optional[str] = None
    ) -> List[MediaUpload]:
        """
        Admins see everything; everyone else only ever sees their own uploads.

        Raises:
            ValidationError: unknown status filter
        """
        status_enum = parse_status(status)
        query = db.query(MediaUpload)
        if not is_admin:
            query = query.filter(MediaUpload.user_id == user_id)
        if status_enum is not None:
            query = query.filter(MediaUpload.status == status_enum)
        return query.order_by(MediaUpload.created_at.desc()).all()
