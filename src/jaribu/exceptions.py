# src/jaribu/exceptions.py

"""
Exception hierarchy for jaribu.

Failures inside test bodies are never raised through these types; they are
converted into TestResult records by the engine. These exceptions signal a
broken harness: bad configuration, malformed test classes or a command that
could not be spawned.
"""


class JaribuError(Exception):
    """Base class for all jaribu errors."""

    pass


class ConfigurationError(JaribuError):
    """Raised when configuration cannot be loaded or fails validation."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        full_message = message
        if path:
            full_message += f" (File: '{path}')"
        super().__init__(full_message)


class DiscoveryError(JaribuError):
    """Raised when a test class cannot be introspected."""

    def __init__(self, message: str, target: object | None = None):
        self.target = target
        super().__init__(message)


class CommandExecutionError(JaribuError):
    """Raised when an external command could not be started."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        details: Exception | None = None,
    ):
        self.command = command
        self.details = details
        full_message = message
        if command:
            full_message += f" (Command: '{' '.join(command)}')"
        super().__init__(full_message)
        if details and hasattr(self, "add_note"):
            self.add_note(f"Original error: {type(details).__name__}: {details}")


# 🔼⚙️
