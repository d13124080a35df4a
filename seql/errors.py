"""Exception types raised by the identity toolkit."""

from __future__ import annotations

from typing import Any, Dict, Optional


class SeqlError(Exception):
    def __init__(self, message: str, *, code: str = "SEQL_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class TreeError(SeqlError):
    """A tree provider was handed a node it cannot work with."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="tree-error", details=details)


class SeqlParseError(SeqlError):
    """Malformed canonical string.

    Parse faults point at corrupted data or a programming error and are never
    retried. ``position`` is the offset in the input where parsing stopped.
    """

    default_code = "parse-error"

    def __init__(self, message: str, *, source: str = "", position: Optional[int] = None):
        details: Dict[str, Any] = {"source": source}
        if position is not None:
            details["position"] = position
        super().__init__(message, code=self.default_code, details=details)
        self.source = source
        self.position = position


class MissingVersionError(SeqlParseError):
    default_code = "missing-version"


class MissingAnchorSeparatorError(SeqlParseError):
    default_code = "missing-anchor-separator"


class UnsupportedVersionError(SeqlParseError):
    default_code = "unsupported-version"


class UnterminatedNodeError(SeqlParseError):
    default_code = "unterminated-node"


class UnexpectedTrailingContentError(SeqlParseError):
    default_code = "unexpected-trailing-content"


class InvalidNodeError(SeqlParseError):
    default_code = "invalid-node"


class InvalidConstraintError(SeqlParseError):
    default_code = "invalid-constraint"


__all__ = [
    "SeqlError",
    "TreeError",
    "SeqlParseError",
    "MissingVersionError",
    "MissingAnchorSeparatorError",
    "UnsupportedVersionError",
    "UnterminatedNodeError",
    "UnexpectedTrailingContentError",
    "InvalidNodeError",
    "InvalidConstraintError",
]
