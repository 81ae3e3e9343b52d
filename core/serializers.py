"""
Model -> JSON dict conversion shared by the routers.
Keys are camelCase; password hashes and internal columns are never exposed.
"""
from datetime import datetime
from typing import Optional

from database.models import User, Category, Nominee, MediaUpload, Vote


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def category_to_dict(category: Category, nominees: Optional[list] = None) -> dict:
    data = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "year": category.year,
        "maxNominees": category.max_nominees,
        "allowMultipleVotes": category.allow_multiple_votes,
        "votingEnabled": category.voting_enabled,
        "order": category.order,
        "isActive": category.is_active,
        "createdBy": category.created_by,
        "createdAt": _iso(category.created_at),
        "updatedAt": _iso(category.updated_at),
    }
    if nominees is not None:
        data["nominees"] = nominees
    return data


def media_to_dict(media: MediaUpload, storage=None) -> dict:
    return {
        "id": media.id,
        "userId": media.user_id,
        "filename": media.filename,
        "originalFilename": media.original_filename,
        "filePath": media.file_path,
        "url": storage.get_url(media.file_path) if storage is not None else None,
        "mediaType": media.media_type.value,
        "fileSize": media.file_size,
        "description": media.description,
        "status": media.status.value,
        "adminNotes": media.admin_notes,
        "reviewedBy": media.reviewed_by,
        "reviewedAt": _iso(media.reviewed_at),
        "createdAt": _iso(media.created_at),
        "updatedAt": _iso(media.updated_at),
    }


def nominee_to_dict(nominee: Nominee, storage=None) -> dict:
    linked = nominee.linked_media
    return {
        "id": nominee.id,
        "name": nominee.name,
        "description": nominee.description,
        "categoryId": nominee.category_id,
        "linkedMediaId": nominee.linked_media_id,
        "linkedMedia": media_to_dict(linked, storage) if linked is not None else None,
        "isActive": nominee.is_active,
        "createdBy": nominee.created_by,
        "createdAt": _iso(nominee.created_at),
        "updatedAt": _iso(nominee.updated_at),
    }


def vote_to_dict(vote: Vote) -> dict:
    return {
        "id": vote.id,
        "userId": vote.user_id,
        "categoryId": vote.category_id,
        "nomineeId": vote.nominee_id,
        "ipAddress": vote.ip_address,
        "userAgent": vote.user_agent,
        "createdAt": _iso(vote.created_at),
    }
