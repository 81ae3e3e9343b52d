"""
Vote ledger: casting, retracting, listing and tallying votes.

At most one vote per (user, category) exists unless the category allows
multiple votes. The check in ``cast_vote`` gives a clean error in the common
case; the ``uq_vote_single_per_category`` unique constraint decides races
between concurrent requests, and its violation is reported as DuplicateVote.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import Vote, Nominee
from database.connection import ConstraintViolation, commit_or_raise
from services.category_service import CategoryService
from services.nominee_service import NomineeService
from core.exceptions import (
    MissingField, InvalidCategory, InvalidNominee, VotingDisabled, DuplicateVote, NotFound
)
from core.logger import logger


class VoteService:
    """Service for vote operations."""

    @staticmethod
    def get_vote_for_user_and_category(db: Session, user_id: str, category_id: str) -> Optional[Vote]:
        return db.query(Vote).filter(
            Vote.user_id == user_id,
            Vote.category_id == category_id
        ).first()

    @staticmethod
    def cast_vote(
        db: Session,
        user_id: str,
        category_id: Optional[str],
        nominee_id: Optional[str],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> Vote:
        """
        Record a vote.

        Checks, in order: category exists, voting enabled, nominee belongs to
        the category, no earlier vote in a single-vote category.

        Raises:
            MissingField: category or nominee not supplied
            InvalidCategory, VotingDisabled, InvalidNominee, DuplicateVote
        """
        if not category_id or not nominee_id:
            raise MissingField("Category and nominee are required")

        category = CategoryService.get_category(db, category_id)
        if category is None:
            raise InvalidCategory("Invalid category")

        if not category.voting_enabled:
            raise VotingDisabled("Voting is disabled for this category")

        nominee = NomineeService.get_nominee(db, nominee_id)
        if nominee is None or nominee.category_id != category_id:
            raise InvalidNominee("Invalid nominee for this category")

        if not category.allow_multiple_votes:
            existing = VoteService.get_vote_for_user_and_category(db, user_id, category_id)
            if existing is not None:
                raise DuplicateVote("You have already voted in this category")

        vote = Vote(
            user_id=user_id,
            category_id=category_id,
            nominee_id=nominee_id,
            single_vote_lock=None if category.allow_multiple_votes else True,
            ip_address=(ip_address or "unknown")[:45],
            user_agent=(user_agent or "unknown")[:500],
        )
        db.add(vote)
        try:
            commit_or_raise(db)
        except ConstraintViolation as e:
            if e.kind == "unique":
                logger.info(f"Concurrent duplicate vote rejected: user={user_id} category={category_id}")
                raise DuplicateVote("You have already voted in this category") from e
            raise

        logger.info(f"Vote recorded: user={user_id} category={category_id} nominee={nominee_id}")
        return vote

    @staticmethod
    def delete_vote(db: Session, user_id: str, vote_id: str) -> bool:
        """
        Retract one of the caller's own votes.

        The delete is scoped to the owner in a single statement, so a vote that
        belongs to someone else is indistinguishable from a missing one.

        Raises:
            NotFound: no vote with that id owned by the user
        """
        deleted = db.query(Vote).filter(
            Vote.id == vote_id,
            Vote.user_id == user_id
        ).delete(synchronize_session=False)
        db.commit()

        if not deleted:
            raise NotFound("Vote not found or not authorized to delete")

        logger.info(f"Vote deleted: {vote_id} by user {user_id}")
        return True

    @staticmethod
    def list_votes_for_user(db: Session, user_id: str) -> List[Vote]:
        return db.query(Vote).filter(Vote.user_id == user_id).order_by(Vote.created_at).all()

    @staticmethod
    def tally(db: Session, category_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Vote counts per nominee, optionally restricted to one category.
        Raw counts only; ordering and tie-breaking are left to the caller.
        """
        query = db.query(
            Vote.nominee_id,
            Nominee.name,
            Vote.category_id,
            func.count(Vote.id).label("vote_count")
        ).join(Nominee, Nominee.id == Vote.nominee_id)

        if category_id:
            query = query.filter(Vote.category_id == category_id)

        rows = query.group_by(Vote.nominee_id, Nominee.name, Vote.category_id).all()
        return [
            {
                "nomineeId": nominee_id,
                "nomineeName": nominee_name,
                "categoryId": row_category_id,
                "voteCount": vote_count,
            }
            for nominee_id, nominee_name, row_category_id, vote_count in rows
        ]
