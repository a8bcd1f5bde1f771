"""Domain errors for staffing and the services built around it.

Every error carries a message that is safe to show to the user. HTTP routes
translate them using `status_code`.
"""

from typing import List, Optional


class StaffingError(Exception):
    """Base class for user-facing domain errors."""

    status_code = 400
    message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class EventNotFoundError(StaffingError):
    status_code = 404
    message = "Event not found"

    def __init__(self, event_id: str):
        super().__init__()
        self.event_id = event_id


class RegistrationNotFoundError(StaffingError):
    status_code = 404
    message = "Registration not found"


class AlreadyRegisteredError(StaffingError):
    """Recoverable: the user already holds a registration for this event and category."""

    status_code = 409
    message = "You are already registered for this event"


class CategoryFullError(StaffingError):
    status_code = 409

    def __init__(self, category: str):
        super().__init__(f"All positions for {category} are filled")
        self.category = category


class NotEligibleError(StaffingError):
    status_code = 403

    def __init__(self, category: str, missing: List[str]):
        super().__init__(
            f"Missing qualifications for {category}: {', '.join(missing)}"
        )
        self.category = category
        self.missing = missing


class EventClosedError(StaffingError):
    status_code = 409
    message = "Registration is only possible for planned events"


class UnknownCategoryError(StaffingError):
    status_code = 422

    def __init__(self, category: str):
        super().__init__(f"Event has no staff category '{category}'")
        self.category = category


class NotAllowedError(StaffingError):
    status_code = 403
    message = "Access denied"


class ValidationFailedError(StaffingError):
    """Input rejected by a service; `errors` maps field names to messages."""

    status_code = 422
    message = "Please check your input"

    def __init__(self, errors: dict, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class ConflictError(StaffingError):
    status_code = 409


class NotFoundError(StaffingError):
    status_code = 404
    message = "Not found"


class ServiceUnavailableError(StaffingError):
    """A read or write against the database failed; nothing partial was returned."""

    status_code = 503
    message = "The service is temporarily unavailable, please try again"
