"""Error taxonomy shared by the interaction engine components."""


class EngineError(RuntimeError):
    """Base exception for all interaction engine failures."""

    code = "engine_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    """Raised when a command carries malformed input, e.g. an empty comment body."""

    code = "validation_error"


class NotFoundError(EngineError):
    """Raised when a referenced subject, parent or answer is absent or soft-deleted."""

    code = "not_found"


class ForbiddenError(EngineError):
    """Raised when an ownership rule is violated."""

    code = "forbidden"


class ConflictTransientError(EngineError):
    """Raised after lock contention outlived the bounded retry budget.

    Callers may safely retry the command.
    """

    code = "conflict"
    retryable = True


class DependencyUnavailableError(EngineError):
    """Raised by cache or search collaborators when their backend is unreachable.

    Never surfaced to end callers: the owning component degrades and logs.
    """

    code = "dependency_unavailable"
