"""Exception hierarchy for corpus-query."""

from pathlib import Path


class CorpusQueryError(Exception):
    """Base exception for all corpus-query errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all corpus-query errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(CorpusQueryError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Grammar Errors
class GrammarParseError(CorpusQueryError):
    """Malformed query text.

    Always recoverable: callers degrade to "unparseable" instead of failing.
    """

    def __init__(self, text: str, message: str) -> None:
        self.text = text
        super().__init__(message)


class PatternParseError(GrammarParseError):
    """Token pattern (CQL) text cannot be parsed."""

    def __init__(self, text: str, detail: str) -> None:
        self.detail = detail
        super().__init__(text, f"Failed to parse token pattern '{text}': {detail}")


class FilterParseError(GrammarParseError):
    """Metadata filter text cannot be parsed."""

    def __init__(self, text: str, detail: str) -> None:
        self.detail = detail
        super().__init__(text, f"Failed to parse filter '{text}': {detail}")


class UnsupportedConstructError(CorpusQueryError):
    """Valid pattern that a simplified view cannot represent.

    Causes a downgrade to a more capable view, never shown to the user.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


# Snapshot Errors
class SnapshotConfigurationError(CorpusQueryError):
    """Search state that must not be sent to the backend."""

    def __init__(self, setting: str, reason: str) -> None:
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid search setting '{setting}': {reason}")


# Backend Errors
class BackendError(CorpusQueryError):
    """Search backend reported an error or could not be reached."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class BackendBusyError(BackendError):
    """Backend is too busy to keep counting (``SERVER_BUSY``)."""

    def __init__(self, message: str = "Server is too busy") -> None:
        super().__init__("SERVER_BUSY", message)
