"""Exception types raised by the workflow and the LLM gateway."""


class ScriptosaurError(Exception):
    """Base class for all recoverable application errors."""


class PreconditionError(ScriptosaurError):
    """An action was refused before any request was sent."""


class WorkflowBusyError(ScriptosaurError):
    """Another action of the same workflow is still in progress."""


class GatewayError(ScriptosaurError):
    """The LLM service rejected or failed a request."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class ClicheFormatError(ScriptosaurError):
    """The cliché detection response could not be parsed."""
