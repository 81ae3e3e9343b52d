"""
Database models for the nomination and voting platform.
"""
import uuid
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text,
    ForeignKey, JSON, Index, UniqueConstraint, TypeDecorator
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


def new_id() -> str:
    """Primary keys are UUID strings."""
    return str(uuid.uuid4())


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums - Must be defined before models that use them
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles for authorization."""
    USER = "user"
    ADMIN = "admin"


class MediaStatus(str, enum.Enum):
    """Media review state. APPROVED and REJECTED are terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MediaType(str, enum.Enum):
    """Kinds of user-submitted media."""
    PHOTO = "photo"
    VIDEO = "video"


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """User model for authentication and authorization."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(EnumValue(UserRole, 20), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    media_uploads = relationship("MediaUpload", back_populates="owner", foreign_keys="MediaUpload.user_id")
    votes = relationship("Vote", back_populates="user")

    __table_args__ = (
        Index('idx_user_role', 'role'),
    )


class Category(Base):
    """A votable contest grouping nominees."""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    year = Column(Integer, nullable=True)
    max_nominees = Column(Integer, nullable=True)
    allow_multiple_votes = Column(Boolean, default=False, nullable=False)
    voting_enabled = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    nominees = relationship("Nominee", back_populates="category")

    __table_args__ = (
        Index('idx_category_active', 'is_active'),
        Index('idx_category_year', 'year'),
    )


class MediaUpload(Base):
    """User-submitted media moving through the review state machine."""
    __tablename__ = "media_uploads"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=False)
    file_path = Column(String(512), nullable=False)  # object-store key
    media_type = Column(EnumValue(MediaType, 20), nullable=False)
    file_size = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(EnumValue(MediaStatus, 20), default=MediaStatus.PENDING, nullable=False)
    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = relationship("User", back_populates="media_uploads", foreign_keys=[user_id])

    __table_args__ = (
        Index('idx_media_user', 'user_id'),
        Index('idx_media_status', 'status'),
    )


class Nominee(Base):
    """A candidate within a category."""
    __tablename__ = "nominees"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False)
    linked_media_id = Column(String(36), ForeignKey("media_uploads.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="nominees")
    linked_media = relationship("MediaUpload")

    __table_args__ = (
        Index('idx_nominee_category', 'category_id'),
        Index('idx_nominee_active', 'is_active'),
    )


class Vote(Base):
    """
    A single ballot.

    ``single_vote_lock`` is True for votes cast into a category that does not
    allow multiple votes and NULL otherwise. Since NULLs never collide in a
    unique index, the constraint below allows at most one locked vote per
    (user, category) while leaving multi-vote categories unconstrained.
    """
    __tablename__ = "votes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    nominee_id = Column(String(36), ForeignKey("nominees.id", ondelete="CASCADE"), nullable=False)
    single_vote_lock = Column(Boolean, nullable=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 compatible
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="votes")
    nominee = relationship("Nominee")

    __table_args__ = (
        UniqueConstraint('user_id', 'category_id', 'single_vote_lock', name='uq_vote_single_per_category'),
        Index('idx_vote_user_category', 'user_id', 'category_id'),
        Index('idx_vote_nominee', 'nominee_id'),
    )


class AuditLog(Base):
    """Audit log for security and compliance."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(100), nullable=False)  # e.g., "vote_cast", "media_review"
    resource_type = Column(String(50), nullable=True)  # e.g., "vote", "media", "category"
    resource_id = Column(String(100), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    details = Column(JSON, nullable=True)  # not 'metadata' to avoid conflict with Base.metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_audit_user', 'user_id'),
        Index('idx_audit_action', 'action'),
    )
