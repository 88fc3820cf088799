"""Error taxonomy shared by every pipeline stage."""
from __future__ import annotations

from typing import Optional


class LocatorError(RuntimeError):
    kind = "error"


class ConfigurationError(LocatorError):
    kind = "configuration"


class ValidationError(LocatorError):
    kind = "validation"

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"Invalid {field}: {constraint}")
        self.field = field
        self.constraint = constraint


class UpstreamError(LocatorError):
    kind = "upstream"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class UpstreamTimeoutError(UpstreamError):
    kind = "timeout"
