"""
Category APIs. Reads are public; mutations are admin only.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_storage, require_admin
from services.category_service import CategoryService
from services.nominee_service import NomineeService
from services.audit_service import AuditService
from core.exceptions import NotFound
from core.responses import success_response
from core.serializers import category_to_dict, nominee_to_dict


router = APIRouter(prefix="/api/categories", tags=["categories"])


class CategoryCreate(BaseModel):
    """Create category request."""
    name: Optional[str] = None
    description: Optional[str] = None
    year: Optional[int] = None
    maxNominees: Optional[int] = None
    allowMultipleVotes: Optional[bool] = None
    votingEnabled: Optional[bool] = None
    order: Optional[int] = None


class CategoryUpdate(BaseModel):
    """Update category request. Only supplied fields change."""
    name: Optional[str] = None
    description: Optional[str] = None
    year: Optional[int] = None
    maxNominees: Optional[int] = None
    allowMultipleVotes: Optional[bool] = None
    votingEnabled: Optional[bool] = None
    order: Optional[int] = None
    isActive: Optional[bool] = None


@router.get("")
async def list_categories(
    active_only: bool = Query(False),
    year: Optional[int] = Query(None),
    db: Session = Depends(get_db_session)
):
    """List categories in display order."""
    categories = CategoryService.list_categories(db, active_only=active_only, year=year)
    return success_response(data=[category_to_dict(c) for c in categories])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request_data: CategoryCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Create a category. Admin only."""
    category = CategoryService.create_category(
        db,
        name=request_data.name,
        created_by=current_user.id,
        description=request_data.description,
        year=request_data.year,
        max_nominees=request_data.maxNominees,
        allow_multiple_votes=request_data.allowMultipleVotes,
        voting_enabled=request_data.votingEnabled,
        order=request_data.order,
    )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="category_create",
        user_id=current_user.id,
        resource_type="category",
        resource_id=category.id
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=success_response(data=category_to_dict(category), message="Category created successfully")
    )


@router.get("/{category_id}")
async def get_category(
    category_id: str,
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Get a category together with its active nominees."""
    category = CategoryService.get_category(db, category_id)
    if category is None:
        raise NotFound("Category not found")

    nominees = NomineeService.list_nominees(db, category_id=category_id, only_active=True)
    return success_response(
        data=category_to_dict(category, nominees=[nominee_to_dict(n, storage) for n in nominees])
    )


@router.put("/{category_id}")
async def update_category(
    category_id: str,
    request_data: CategoryUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Update a category. Admin only."""
    changes = request_data.model_dump(exclude_unset=True)
    category = CategoryService.update_category(db, category_id, changes)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="category_update",
        user_id=current_user.id,
        resource_type="category",
        resource_id=category_id,
        details={"fields": sorted(changes.keys())}
    )

    return success_response(data=category_to_dict(category), message="Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Delete a category that has no nominees. Admin only."""
    CategoryService.delete_category(db, category_id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="category_delete",
        user_id=current_user.id,
        resource_type="category",
        resource_id=category_id
    )

    return success_response(message="Category deleted successfully")
