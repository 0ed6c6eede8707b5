"""Warehouse exception classes."""


class WarehouseError(Exception):
    """Base exception for all Warehouse errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(WarehouseError):
    """Raised when the configuration file is unreadable or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class BackendError(WarehouseError):
    """Raised when a repository backend cannot be opened or queried."""

    def __init__(self, message: str) -> None:
        super().__init__("BACKEND_ERROR", message)


class NotFoundError(WarehouseError):
    """Raised when a repository, user, or revision is not found."""

    def __init__(self, message: str) -> None:
        super().__init__("NOT_FOUND", message)


class ChangesetConflictError(WarehouseError):
    """Raised when a revision is already recorded for a repository."""

    def __init__(self, repository_id: str, revision: int) -> None:
        super().__init__(
            "CHANGESET_CONFLICT",
            f"Revision {revision} already recorded for repository {repository_id}",
        )
        self.repository_id = repository_id
        self.revision = revision


class SyncProgressUndefined(WarehouseError, ValueError):
    """Raised when sync progress is requested without a known latest revision."""

    def __init__(self, message: str) -> None:
        super().__init__("SYNC_PROGRESS_UNDEFINED", message)
