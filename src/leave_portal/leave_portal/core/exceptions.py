class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    @property
    def code(self) -> str:
        return type(self).__name__


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when the caller cannot be identified."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    status_code = 404


# Permit creation preconditions
class NoActiveAcademicYear(ValidationError):
    pass


class NoClassMembership(ValidationError):
    pass


class InvalidGroupMembers(ValidationError):
    pass


class HolidayError(ValidationError):
    pass


class NoScheduleMatch(ValidationError):
    pass


# Approver resolution
class NoHomeroomTeacher(ValidationError):
    pass


class NoAffairsHeadUser(ValidationError):
    pass


# Workflow
class PermitNotFound(NotFoundError):
    pass


class ApprovalNotFound(NotFoundError):
    pass


class InvalidStatusTransition(DomainError):
    status_code = 409


class AlreadyDecided(InvalidStatusTransition):
    """The approval (or the whole permit) already carries a final decision."""
