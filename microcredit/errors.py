"""
Error Taxonomy Module

Exception hierarchy for the engine. Each class carries the HTTP status the
API layer answers with.
"""


class MicrocreditError(Exception):
    """Base exception for all engine errors"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(MicrocreditError):
    """No session or an invalid one"""
    status_code = 401


class ValidationError(MicrocreditError):
    """Request data failed validation"""
    status_code = 400


class MissingFieldError(ValidationError):
    """A required field is absent or empty"""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


class InvalidNumericError(ValidationError):
    """A numeric (or date) field could not be parsed"""

    def __init__(self, field_name: str, message: str = None):
        super().__init__(message or f"Field {field_name} must be a valid number")
        self.field_name = field_name


class OutOfRangeError(ValidationError):
    """A numeric field is outside its allowed range"""

    def __init__(self, field_name: str, message: str):
        super().__init__(message)
        self.field_name = field_name


class InvalidEnumError(ValidationError):
    """A field holds a value outside its enumeration"""

    def __init__(self, field_name: str, value, allowed):
        allowed_list = ", ".join(allowed)
        super().__init__(f"Invalid value '{value}' for {field_name}; expected one of: {allowed_list}")
        self.field_name = field_name


class NotFoundError(MicrocreditError):
    """A referenced record does not exist"""
    status_code = 404


class ClientNotFoundError(NotFoundError):

    def __init__(self, client_id: str):
        super().__init__(f"Client {client_id} not found")
        self.client_id = client_id


class ConflictError(MicrocreditError):
    """The write would overwrite state that must stay immutable"""
    status_code = 409


class DailyClosingExistsError(ConflictError):

    def __init__(self, day):
        super().__init__(f"Day {day.isoformat()} is already closed")
        self.day = day


class LaterDayClosedError(ConflictError):
    """An earlier day cannot be closed once a later one is"""

    def __init__(self, day, later_day):
        super().__init__(
            f"Cannot close {day.isoformat()}: {later_day.isoformat()} is already closed"
        )
        self.day = day
        self.later_day = later_day


class DuplicateRecordError(Exception):
    """Raised by storage backends when a create-only insert hits an existing key"""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"Record {record_id} already exists in {table}")
        self.table = table
        self.record_id = record_id
