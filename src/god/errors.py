class SupervisorError(Exception):
    """Base class for errors raised by the supervisor itself (never by a task)."""


class ConfigurationError(SupervisorError):
    """Raised when a setting cannot be interpreted."""
