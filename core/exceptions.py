"""
Domain error taxonomy.

Every failure a service can report is one of these classes. The API layer
translates them into the ``{success, message, error}`` envelope using the
``status_code`` and ``error_code`` carried by each class.
"""
from typing import Optional


class VotingPlatformError(Exception):
    """Base class for all domain failures."""
    status_code = 400
    error_code = "error"
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# 400 - validation / domain rules

class ValidationError(VotingPlatformError):
    error_code = "validation_error"
    default_message = "Invalid request"


class MissingField(ValidationError):
    error_code = "missing_field"
    default_message = "Missing required fields"


class InvalidTransition(ValidationError):
    error_code = "invalid_transition"
    default_message = "Media has already been reviewed"


class InvalidReference(VotingPlatformError):
    error_code = "invalid_reference"
    default_message = "Referenced resource does not exist"


class InvalidCategory(InvalidReference):
    error_code = "invalid_category"
    default_message = "Invalid category"


class InvalidNominee(InvalidReference):
    error_code = "invalid_nominee"
    default_message = "Invalid nominee for this category"


class InvalidMedia(InvalidReference):
    error_code = "invalid_media"
    default_message = "Invalid media ID"


class DuplicateVote(VotingPlatformError):
    error_code = "duplicate_vote"
    default_message = "You have already voted in this category"


class VotingDisabled(VotingPlatformError):
    error_code = "voting_disabled"
    default_message = "Voting is disabled for this category"


class MediaNotApproved(VotingPlatformError):
    error_code = "media_not_approved"
    default_message = "Media must be approved before linking"


class HasDependents(VotingPlatformError):
    error_code = "has_dependents"
    default_message = "Cannot delete a resource that is still referenced"


# 401 / 403 / 404

class Unauthorized(VotingPlatformError):
    status_code = 401
    error_code = "unauthorized"
    default_message = "Unauthorized"


class Forbidden(VotingPlatformError):
    status_code = 403
    error_code = "forbidden"
    default_message = "Access denied"


class NotFound(VotingPlatformError):
    status_code = 404
    error_code = "not_found"
    default_message = "Not found"


# 500

class Unexpected(VotingPlatformError):
    status_code = 500
    error_code = "unexpected"
    default_message = "Internal server error"
