"""mcp-bridge exception hierarchy.

All public exceptions inherit from MCPBridgeError, giving callers a single
base class to catch when they want to handle any mcp-bridge failure without
swallowing unrelated errors.

Per-item conversion problems (detection, parse, validation) are normally
accumulated into result objects rather than raised; the exception types
exist for callers that want to escalate them and for the storage and
lifecycle failures that must propagate.
"""


class MCPBridgeError(Exception):
    """Base exception for all mcp-bridge errors."""


class DetectionError(MCPBridgeError):
    """Raised when the format of a configuration file cannot be recognised.

    Recoverable: the scanner falls back to generic field extraction.
    """


class ParseError(MCPBridgeError):
    """Raised when content matched a format but no canonical model could be built."""


class ValidationError(MCPBridgeError):
    """Raised when a canonical collection is structurally invalid.

    Attributes:
        errors: The individual validation messages.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class PreconditionError(MCPBridgeError):
    """Raised for an invalid migration request (same tool, unsupported tool)."""


class StorageError(MCPBridgeError):
    """Raised when the file system or keyed store fails.

    Attributes:
        target: The path or store key involved in the failure.
    """

    def __init__(self, message: str, target: str = "") -> None:
        super().__init__(f"{message}: {target}" if target else message)
        self.target = target


class InvalidTransitionError(MCPBridgeError):
    """Raised when a migration task is moved along an illegal lifecycle edge."""


class OperationInProgressError(MCPBridgeError):
    """Raised when a scan or migration is requested while one is already running."""


class ExportError(MCPBridgeError):
    """Raised when interchange data cannot be produced or understood."""
