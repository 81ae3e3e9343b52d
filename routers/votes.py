"""
Voting APIs.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from database.models import User
from auth.dependencies import get_db_session, get_current_user
from services.vote_service import VoteService
from services.audit_service import AuditService, client_ip, client_user_agent
from core.responses import success_response
from core.serializers import vote_to_dict


router = APIRouter(prefix="/api/votes", tags=["votes"])


class VoteCreate(BaseModel):
    """Cast vote request."""
    category_id: Optional[str] = None
    nominee_id: Optional[str] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def cast_vote(
    request_data: VoteCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """
    Cast a vote for a nominee in a category.
    One vote per category unless the category allows multiple votes.
    """
    ip_address = client_ip(request)
    user_agent = client_user_agent(request)

    vote = VoteService.cast_vote(
        db,
        user_id=current_user.id,
        category_id=request_data.category_id,
        nominee_id=request_data.nominee_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    AuditService.log_action(
        db=db,
        action="vote_cast",
        user_id=current_user.id,
        resource_type="vote",
        resource_id=vote.id,
        ip_address=ip_address,
        user_agent=user_agent,
        details={"category_id": vote.category_id, "nominee_id": vote.nominee_id}
    )

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=success_response(data=vote_to_dict(vote), message="Vote recorded successfully")
    )


@router.get("/my")
async def my_votes(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Votes cast by the current user."""
    votes = VoteService.list_votes_for_user(db, current_user.id)
    return success_response(data=[vote_to_dict(v) for v in votes])


@router.get("/results")
async def results(
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db_session)
):
    """Public vote tally per nominee."""
    return success_response(data=VoteService.tally(db, category_id=category_id))


@router.delete("/{vote_id}")
async def delete_vote(
    vote_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session)
):
    """Retract one of the current user's votes."""
    VoteService.delete_vote(db, current_user.id, vote_id)

    AuditService.log_from_request(
        db=db,
        request=request,
        action="vote_delete",
        user_id=current_user.id,
        resource_type="vote",
        resource_id=vote_id
    )

    return success_response(message="Vote deleted successfully")
