"""
Nominee APIs. Reads are public; mutations are admin only.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_storage, require_admin
from services.nominee_service import NomineeService
from services.audit_service import AuditService
from core.exceptions import NotFound
from core.responses import success_response
from core.serializers import nominee_to_dict


router = APIRouter(prefix="/api/nominees", tags=["nominees"])


class NomineeCreate(BaseModel):
    """Create nominee request. ``category`` and ``linked_media`` are ids."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    linked_media: Optional[str] = None
    is_active: Optional[bool] = None


class NomineeUpdate(BaseModel):
    """Update nominee request."""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    linked_media: Optional[str] = None
    is_active: Optional[bool] = None


@router.get("")
async def list_nominees(
    category_id: Optional[str] = Query(None),
    only_active: bool = Query(True),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """List nominees, optionally for one category."""
    nominees = NomineeService.list_nominees(db, category_id=category_id, only_active=only_active)
    return success_response(data=[nominee_to_dict(n, storage) for n in nominees])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_nominee(
    request_data: NomineeCreate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Create a nominee. Linked media must already be approved. Admin only."""
    nominee = NomineeService.create_nominee(
        db,
        name=request_data.name,
        category_id=request_data.category,
        created_by=current_user.id,
        description=request_data.description,
        linked_media_id=request_data.linked_media,
        is_active=request_data.is_active,
    )

    AuditService.log_from_request(
        db=db,
        request=request,
        action="nominee_create",
        user_id=current_user.id,
        resource_type="nominee",
        resource_id=nominee.id
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=success_response(data=nominee_to_dict(nominee, storage), message="Nominee created successfully")
    )


@router.get("/{nominee_id}")
async def get_nominee(
    nominee_id: str,
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    nominee = NomineeService.get_nominee(db, nominee_id)
    if nominee is None:
        raise NotFound("Nominee not found")
    return success_response(data=nominee_to_dict(nominee, storage))


@router.put("/{nominee_id}")
async def update_nominee(
    nominee_id: str,
    request_data: NomineeUpdate,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    storage=Depends(get_storage)
):
    """Update a nominee. Admin only."""
    changes = request_data.model_dump(exclude_unset=True)
    nominee = NomineeService.update_nominee(db, nominee_id, changes)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="nominee_update",
        user_id=current_user.id,
        resource_type="nominee",
        resource_id=nominee_id,
        details={"fields": sorted(changes.keys())}
    )

    return success_response(data=nominee_to_dict(nominee, storage), message="Nominee updated successfully")


@router.delete("/{nominee_id}")
async def delete_nominee(
    nominee_id: str,
    request: Request,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db_session)
):
    """Delete a nominee and the votes cast for it. Admin only."""
    removed_votes = NomineeService.delete_nominee(db, nominee_id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="nominee_delete",
        user_id=current_user.id,
        resource_type="nominee",
        resource_id=nominee_id,
        details={"votes_removed": removed_votes}
    )

    return success_response(message="Nominee deleted successfully")
