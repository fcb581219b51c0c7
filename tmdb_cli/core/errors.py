from typing import Any


class CLIError(Exception):
    exit_code = 1

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ValidationError(CLIError):
    """Malformed or out-of-range user input. Raised before any network call."""


class ConfigError(CLIError):
    pass


class UpstreamError(CLIError):
    """Permanent failure talking to TMDB; never retried."""


class RateLimitError(UpstreamError):
    """TMDB kept answering 429, or asked for a wait we won't honour."""


def format_error(exc: CLIError) -> str:
    lines = [f"error [{exc.code}]: {exc.message}"]
    for key, value in exc.details.items():
        lines.append(f"  {key}={value}")
    return "\n".join(lines)


def unexpected_error(exc: Exception) -> CLIError:
    return CLIError("internal_error", "Unexpected error", details={"type": exc.__class__.__name__, "error": str(exc)})
