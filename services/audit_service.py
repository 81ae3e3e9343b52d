"""
Audit logging service for security and compliance.
"""
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from fastapi import Request

from database.models import AuditLog
from core.logger import logger


def client_ip(request: Request) -> str:
    """
    Best-effort caller address: first X-Forwarded-For hop, then X-Real-IP,
    then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def client_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "unknown"


class AuditService:
    """Service for audit logging."""

    @staticmethod
    def log_action(
        db: Session,
        action: str,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditLog:
        """
        Log an action to audit log.

        Args:
            db: Database session
            action: Action name (e.g., "vote_cast", "media_review")
            user_id: Acting user ID
            resource_type: Type of resource (e.g., "vote", "media")
            resource_id: ID of resource
            ip_address: IP address
            user_agent: User agent string
            details: Additional details

        Returns:
            Created AuditLog
        """
        audit_log = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:500] or None,
            details=details
        )
        db.add(audit_log)
        db.commit()
        logger.debug(f"Audit: {action} by {user_id} on {resource_type}:{resource_id}")
        return audit_log

    @staticmethod
    def log_from_request(
        db: Session,
        request: Request,
        action: str,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> AuditLog:
        """Log an action, taking ip/user agent from a FastAPI request."""
        return AuditService.log_action(
            db=db,
            action=action,
            user_id=user_id,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=client_ip(request),
            user_agent=client_user_agent(request),
            details=details
        )
