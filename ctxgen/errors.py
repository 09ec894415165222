"""Exception hierarchy for the project-analysis pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class CtxGenError(RuntimeError):
    """Base class for every error raised by ctxgen."""


class ConfigError(CtxGenError):
    """Raised when the configuration file cannot be parsed."""


class FileOperationError(CtxGenError):
    """Raised by the file-system capability; always carries the offending path."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


class AnalysisError(CtxGenError):
    """Top-level failure that aborts ``analyze_project`` before fan-out."""


class NoPathsError(AnalysisError):
    """No project paths were supplied."""


class DiscoveryError(AnalysisError):
    """The project root could not be walked at all."""


class NoAnalyzableFilesError(AnalysisError):
    """Discovery finished without finding a single analyzable file."""


class NoContentError(AnalysisError):
    """Every candidate file was rejected by the token ceiling or unreadable."""


class ParseError(CtxGenError):
    """A single file's syntax tree could not be built."""

    def __init__(self, message: str, *, file_path: str | None = None, language: str | None = None) -> None:
        super().__init__(message)
        self.file_path = file_path
        self.language = language


class ProviderError(CtxGenError):
    """Failure reported by the structured-completion capability."""

    API_ERROR = "API_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    PARSING_ERROR = "PARSING_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    UNEXPECTED_ANALYSIS_ERROR = "UNEXPECTED_ANALYSIS_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        code: str = UNKNOWN_ERROR,
        provider: str = "unknown",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.provider = provider
        self.details = details or {}

    @classmethod
    def from_exception(cls, exc: BaseException, provider: str) -> "ProviderError":
        if isinstance(exc, ProviderError):
            return exc
        return cls(str(exc) or exc.__class__.__name__, cls.UNKNOWN_ERROR, provider, {"cause": repr(exc)})

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


__all__ = [
    "AnalysisError",
    "ConfigError",
    "CtxGenError",
    "DiscoveryError",
    "FileOperationError",
    "NoAnalyzableFilesError",
    "NoContentError",
    "NoPathsError",
    "ParseError",
    "ProviderError",
]
