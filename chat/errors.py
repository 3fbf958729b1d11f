"""
Exceptions raised across the yoo assistant.

run.main() catches YooError, prints the message and exits with status 1.
Title and log-write failures are handled where they occur instead.
"""


class YooError(Exception):
    """Base class for fatal, user-facing errors."""


class ConfigMissingError(YooError):
    """Config file (or a required value such as the API key) is missing."""


class ConfigParseError(YooError):
    """Config file exists but is not valid YAML of the expected shape."""


class SystemPromptMissingError(YooError):
    """A persona's system prompt file could not be read."""

    def __init__(self, persona_name: str, path, reason: str = ""):
        self.persona_name = persona_name
        self.path = path
        message = f"system prompt file could not be read: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class CompletionError(YooError):
    """The chat-completion request failed or returned nothing usable."""


class LogWriteError(YooError):
    """A transcript could not be written to the log directory."""
