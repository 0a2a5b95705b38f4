class ResolutionError(RuntimeError):
    """Base error raised by the resolution engine."""

class OracleContractError(ResolutionError):
    """Raised when the oracle reply is empty, unparseable or points outside the snapshot."""

class TargetNotAttachedError(ResolutionError):
    """Raised when a cached or freshly resolved locator matches no live element."""

class CommandValidationError(ResolutionError):
    """Raised when a command names an unknown primitive or carries malformed args."""

class ActionExecutionError(ResolutionError):
    """Raised when an interaction primitive fails against the page."""

class CacheCorruptError(ResolutionError):
    """Raised when a durable cache table cannot be read."""

class ScenarioValidationError(ResolutionError):
    """Raised when scenario schema is invalid."""
