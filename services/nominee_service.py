"""
Nominee registry: nominees scoped to a category, optionally linked to approved media.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session

from database.models import Nominee, Vote, MediaUpload, MediaStatus
from services.category_service import CategoryService
from core.exceptions import (
    MissingField, InvalidCategory, InvalidMedia, MediaNotApproved, NotFound, HasDependents
)
from core.logger import logger


class NomineeService:
    """Service for nominee operations."""

    @staticmethod
    def get_nominee(db: Session, nominee_id: str) -> Optional[Nominee]:
        """Get nominee by ID."""
        return db.query(Nominee).filter(Nominee.id == nominee_id).first()

    @staticmethod
    def list_nominees(db: Session, category_id: Optional[str] = None, only_active: bool = True) -> List[Nominee]:
        query = db.query(Nominee)
        if category_id:
            query = query.filter(Nominee.category_id == category_id)
        if only_active:
            query = query.filter(Nominee.is_active.is_(True))
        return query.order_by(Nominee.name).all()

    @staticmethod
    def _require_category(db: Session, category_id: str) -> None:
        if CategoryService.get_category(db, category_id) is None:
            raise InvalidCategory("Invalid category")

    @staticmethod
    def _require_media(db: Session, media_id: str) -> MediaUpload:
        media = db.query(MediaUpload).filter(MediaUpload.id == media_id).first()
        if media is None:
            raise InvalidMedia("Invalid media ID")
        return media

    @staticmethod
    def create_nominee(
        db: Session,
        name: Optional[str],
        category_id: Optional[str],
        created_by: str,
        description: Optional[str] = None,
        linked_media_id: Optional[str] = None,
        is_active: Optional[bool] = None
    ) -> Nominee:
        """
        Create a nominee.

        Raises:
            MissingField: empty name or category
            InvalidCategory: category does not exist
            InvalidMedia: linked media does not exist
            MediaNotApproved: linked media is pending or rejected
        """
        if not name or not name.strip():
            raise MissingField("Nominee name is required")
        if not category_id:
            raise MissingField("Category is required")

        NomineeService._require_category(db, category_id)

        if linked_media_id:
            media = NomineeService._require_media(db, linked_media_id)
            if media.status != MediaStatus.APPROVED:
                raise MediaNotApproved("Media must be approved before linking")

        nominee = Nominee(
            name=name.strip(),
            description=description,
            category_id=category_id,
            linked_media_id=linked_media_id or None,
            is_active=is_active if is_active is not None else True,
            created_by=created_by,
        )
        db.add(nominee)
        db.commit()
        logger.info(f"Created nominee: {nominee.name} in category {category_id}")
        return nominee

    @staticmethod
    def update_nominee(db: Session, nominee_id: str, changes: Dict[str, Any]) -> Nominee:
        """
        Partial update. Newly supplied category / linked media references must
        exist; media approval is only enforced when the nominee is created.

        Raises:
            NotFound: unknown nominee
            MissingField: name set to empty
            InvalidCategory / InvalidMedia: dangling reference
            HasDependents: category change on a nominee with votes
        """
        nominee = NomineeService.get_nominee(db, nominee_id)
        if nominee is None:
            raise NotFound("Nominee not found")

        new_category = changes.get("category")
        if new_category and new_category != nominee.category_id:
            NomineeService._require_category(db, new_category)
            # Votes carry the category they were cast in
            if db.query(Vote).filter(Vote.nominee_id == nominee_id).count():
                raise HasDependents("Cannot move a nominee that already has votes")
            nominee.category_id = new_category

        if "linked_media" in changes:
            media_id = changes["linked_media"]
            if media_id:
                NomineeService._require_media(db, media_id)
            nominee.linked_media_id = media_id or None

        if "name" in changes and changes["name"] is not None:
            if not changes["name"].strip():
                raise MissingField("Nominee name is required")
            nominee.name = changes["name"].strip()
        if "description" in changes:
            nominee.description = changes["description"]
        if changes.get("is_active") is not None:
            nominee.is_active = changes["is_active"]

        db.commit()
        logger.info(f"Updated nominee: {nominee_id}")
        return nominee

    @staticmethod
    def delete_nominee(db: Session, nominee_id: str) -> int:
        """
        Delete a nominee together with the votes cast for it, in one transaction.

        Returns:
            Number of votes removed

        Raises:
            NotFound: unknown nominee
        """
        nominee = NomineeService.get_nominee(db, nominee_id)
        if nominee is None:
            raise NotFound("Nominee not found")

        removed_votes = db.query(Vote).filter(Vote.nominee_id == nominee_id).delete(synchronize_session=False)
        db.delete(nominee)
        db.commit()
        logger.info(f"Deleted nominee {nominee_id} and {removed_votes} vote(s)")
        return removed_votes
