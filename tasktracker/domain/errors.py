from enum import Enum

### COMMENTS
# ============================================
# Domain error conventions
# ============================================
# - Repositories (adapters):
#     * detect missing records -> TaskNotFoundError
#     * map technical failures (SQLAlchemyError, OSError) to StorageError
#
# - Service:
#     * validates user input -> TaskValidationError
#     * validates status transitions -> InvalidStatusError
#     * never catches storage errors, they travel to the caller untouched
#
# - UI (HTTP, CLI):
#     * checks `error.kind`, not the concrete class, to pick a response
#     * anything that is not a DomainError is a technical failure (log the traceback)


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATUS = "invalid_status"
    VALIDATION = "validation"
    STORAGE_FAILURE = "storage_failure"


class DomainError(Exception):
    """Base class for all business errors.
    Each subclass sets `kind`, which is what the outer layers dispatch on.
    Do not raise it directly, use a subclass.
    """
    kind: ErrorKind = ErrorKind.STORAGE_FAILURE


class TaskNotFoundError(DomainError):
    """Raised when the requested task does not exist in storage.
    Comes from `get_by_id`, `update` and `delete` in the repositories, and from
    the service when it checks existence before deleting.
    """
    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(self.__str__())
    def __str__(self):
        return f"task with ID {self.task_id} not found"


class InvalidStatusError(DomainError):
    """Raised when a status value is unknown or the transition is not allowed.
    Only the update path raises it.
    """
    kind = ErrorKind.INVALID_STATUS

    def __init__(self, message: str, current=None, requested=None):
        self.message = message
        self.current = current
        self.requested = requested
        super().__init__(self.__str__())
    def __str__(self):
        return self.message


class TaskValidationError(DomainError):
    """Raised when input data breaks a business rule (e.g. empty title).
    `field` names the offending field so UIs can point at it.
    """
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(self.__str__())
    def __str__(self):
        return f"invalid field '{self.field}': {self.message}"


class StorageError(DomainError):
    """Raised by a backend when the underlying store fails (I/O, connectivity,
    constraint violation). Never retried.
    """
    kind = ErrorKind.STORAGE_FAILURE

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(self.__str__())
    def __str__(self):
        if self.cause is None:
            return f"storage failure during {self.operation}"
        return f"storage failure during {self.operation}: {self.cause}"
