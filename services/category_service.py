"""
Category registry: CRUD and listing of voting categories.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import Category, Nominee
from core.exceptions import MissingField, NotFound, HasDependents
from core.logger import logger

# Request field -> column. Request bodies use the camelCase names.
UPDATABLE_FIELDS = {
    "name": "name",
    "description": "description",
    "year": "year",
    "maxNominees": "max_nominees",
    "allowMultipleVotes": "allow_multiple_votes",
    "votingEnabled": "voting_enabled",
    "order": "order",
    "isActive": "is_active",
}

NON_NULLABLE = {"name", "allow_multiple_votes", "voting_enabled", "order", "is_active"}


class CategoryService:
    """Service for category operations."""

    @staticmethod
    def get_category(db: Session, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        return db.query(Category).filter(Category.id == category_id).first()

    @staticmethod
    def list_categories(db: Session, active_only: bool = False, year: Optional[int] = None) -> List[Category]:
        """Categories in display order."""
        query = db.query(Category)
        if active_only:
            query = query.filter(Category.is_active.is_(True))
        if year is not None:
            query = query.filter(Category.year == year)
        return query.order_by(Category.order, Category.name).all()

    @staticmethod
    def create_category(
        db: Session,
        name: Optional[str],
        created_by: str,
        description: Optional[str] = None,
        year: Optional[int] = None,
        max_nominees: Optional[int] = None,
        allow_multiple_votes: Optional[bool] = None,
        voting_enabled: Optional[bool] = None,
        order: Optional[int] = None
    ) -> Category:
        """
        Create a category.

        Raises:
            MissingField: empty name
        """
        if not name or not name.strip():
            raise MissingField("Category name is required")

        category = Category(
            name=name.strip(),
            description=description,
            year=year,
            max_nominees=max_nominees,
            allow_multiple_votes=bool(allow_multiple_votes) if allow_multiple_votes is not None else False,
            voting_enabled=voting_enabled if voting_enabled is not None else True,
            order=order if order is not None else 0,
            is_active=True,
            created_by=created_by,
        )
        db.add(category)
        db.commit()
        logger.info(f"Created category: {category.name} ({category.id})")
        return category

    @staticmethod
    def update_category(db: Session, category_id: str, changes: Dict[str, Any]) -> Category:
        """
        Apply a partial update. Unknown keys are ignored.

        Raises:
            NotFound: unknown category
            MissingField: name set to empty
        """
        category = CategoryService.get_category(db, category_id)
        if category is None:
            raise NotFound("Category not found")

        for field, column in UPDATABLE_FIELDS.items():
            if field not in changes:
                continue
            value = changes[field]
            if column in NON_NULLABLE and value is None:
                continue
            if column == "name":
                if not value.strip():
                    raise MissingField("Category name is required")
                value = value.strip()
            setattr(category, column, value)

        db.commit()
        logger.info(f"Updated category: {category.id}")
        return category

    @staticmethod
    def count_nominees(db: Session, category_id: str) -> int:
        return db.query(func.count(Nominee.id)).filter(Nominee.category_id == category_id).scalar() or 0

    @staticmethod
    def delete_category(db: Session, category_id: str) -> None:
        """
        Delete a category that no nominee references.

        Raises:
            NotFound: unknown category
            HasDependents: nominees still reference it
        """
        category = CategoryService.get_category(db, category_id)
        if category is None:
            raise NotFound("Category not found")

        nominee_count = CategoryService.count_nominees(db, category_id)
        if nominee_count > 0:
            raise HasDependents("Cannot delete category with existing nominees")

        db.delete(category)
        db.commit()
        logger.info(f"Deleted category: {category_id}")
