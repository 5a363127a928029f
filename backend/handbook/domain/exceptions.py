"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ValidationError(Exception):
    """Raised when a required field is missing or blank, or a value is not recognised."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class InvalidTransitionError(Exception):
    """Raised when a record's current status does not admit the requested command."""

    def __init__(self, current_status: str, command: str, reason: str = ""):
        self.current_status = current_status
        self.command = command
        self.reason = reason
        message = f"Cannot {command} an article in status '{current_status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an optimistic concurrency check fails at write time.

    The caller must re-read the article and resubmit; nothing is retried.
    """

    def __init__(self, public_id: str, message: str):
        self.public_id = public_id
        self.message = message
        super().__init__(f"Article '{public_id}': {message}")


class StorageUnavailableError(Exception):
    """Raised when the record store cannot be reached or fails at the driver level."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
