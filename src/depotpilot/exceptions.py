"""Centralized exception hierarchy for DepotPilot.

Every error carries a message template plus the parameters used to format it,
so the API layer can render a readable message and structured logs can keep
the raw fields.
"""


class AppBaseError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        retriable: bool = False,
        **params: object,
    ) -> None:
        """
        Initialize the error.

        Args:
            message: Message template, formatted with ``params`` (e.g. 'Host {host} is unreachable')
            status_code: Recommended HTTP status code
            retriable: Whether the operation can be retried
            **params: Parameters for string formatting
        """
        super().__init__(message)
        self.template = message
        self.status_code = status_code
        self.retriable = retriable
        self.params = params

    def __str__(self) -> str:
        """Returns the formatted message."""
        try:
            return self.template.format(**self.params)
        except (KeyError, IndexError, ValueError):
            params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
            return f"{self.template} ({params_str})" if params_str else self.template


class ValidationError(AppBaseError):
    """Raised when request input is rejected before any side effect."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=400, **params)


class ConfigurationError(AppBaseError):
    """Raised when the repository configuration points at something unusable."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=400, **params)


class ConnectivityError(AppBaseError):
    """Raised when a target does not answer the reachability probe."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=502, retriable=True, **params)


class SessionError(AppBaseError):
    """Raised when a remote session cannot be opened or closed."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=502, retriable=True, **params)


class TransferError(AppBaseError):
    """Raised when copying an artifact to a target fails."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=502, retriable=True, **params)


class ExecutionError(AppBaseError):
    """Raised when a local or remote command fails to run or exits unsuccessfully."""

    def __init__(self, message: str, exit_code: int | None = None, **params: object) -> None:
        super().__init__(message, status_code=500, exit_code=exit_code, **params)
        self.exit_code = exit_code


class ResourceNotFoundError(AppBaseError):
    """Raised when a requested resource (endpoint, task, etc.) is not found."""

    def __init__(self, message: str, **params: object) -> None:
        super().__init__(message, status_code=404, **params)
