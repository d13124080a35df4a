"""Structural checks for identities that come from outside the generator.

Identities loaded from JSON or hand-written fixtures go through
:func:`validate_identity` before resolution. Nothing here raises: problems
are reported as ``errors`` (the identity cannot be used) and ``warnings``
(usable, but suspicious).
"""

from __future__ import annotations

from typing import Any, List, Mapping

from pydantic import ValidationError

from seql.codec import SUPPORTED_VERSIONS
from seql.models import Identity, ValidationResult


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def _mapping_warnings(data: Mapping[str, Any]) -> List[str]:
    warnings: List[str] = []
    meta = data.get("meta")
    if meta is None:
        warnings.append("Missing meta field")
    elif isinstance(meta, Mapping):
        if "confidence" not in meta:
            warnings.append("Missing confidence score")
        if "timestamp" not in meta:
            warnings.append("Missing timestamp")
    if "constraints" in data and not isinstance(data["constraints"], (list, tuple)):
        warnings.append("Constraints should be a list")
    if "fallback" not in data:
        warnings.append("Missing fallback rules")
    return warnings


def _mapping_errors(data: Mapping[str, Any]) -> List[str]:
    errors: List[str] = []
    if not data.get("version"):
        errors.append("Missing version field")
    for name in ("anchor", "target"):
        node = data.get(name)
        if not isinstance(node, Mapping):
            errors.append(f"Missing {name} field")
            continue
        if not node.get("tag"):
            errors.append(f"{name.capitalize()} missing tag")
        if not isinstance(node.get("score"), (int, float)):
            errors.append(f"{name.capitalize()} missing score")
        if "semantics" not in node:
            errors.append(f"{name.capitalize()} missing semantics")
    path = data.get("path", [])
    if not isinstance(path, (list, tuple)):
        errors.append("Path must be a list")
    else:
        for index, node in enumerate(path):
            if not isinstance(node, Mapping) or not node.get("tag"):
                errors.append(f"Path node {index} missing tag")
    return errors


def _identity_warnings(identity: Identity) -> List[str]:
    warnings: List[str] = []
    if identity.version not in SUPPORTED_VERSIONS:
        warnings.append(f"Unknown version: {identity.version}")
    if identity.meta.confidence == 0.0:
        warnings.append("Confidence is zero")
    if identity.meta.degraded:
        reason = identity.meta.degradation_reason or "unspecified"
        warnings.append(f"Identity is degraded ({reason})")
    if identity.target.semantics.is_empty() and identity.target.ordinal is None:
        warnings.append("Target has no semantics and no ordinal")
    kinds = [constraint.kind for constraint in identity.constraints]
    if len(kinds) != len(set(kinds)):
        warnings.append("Duplicate constraint kinds")
    return warnings


def validate_identity(value: Any) -> ValidationResult:
    """Check an :class:`Identity` or a mapping shaped like one."""
    if isinstance(value, Identity):
        warnings = _identity_warnings(value)
        return ValidationResult(valid=True, warnings=warnings)

    if not isinstance(value, Mapping):
        return ValidationResult(valid=False, errors=[f"Expected an identity, got {type(value).__name__}"])

    errors = _mapping_errors(value)
    warnings = _mapping_warnings(value)
    if errors:
        return ValidationResult(valid=False, errors=errors, warnings=warnings)
    try:
        identity = Identity.model_validate(dict(value))
    except ValidationError as exc:
        return ValidationResult(
            valid=False,
            errors=[_format_error(error) for error in exc.errors()],
            warnings=warnings,
        )
    return ValidationResult(valid=True, warnings=[*warnings, *_identity_warnings(identity)])


def is_identity(value: Any) -> bool:
    """Cheap shape test; does not validate field contents."""
    if isinstance(value, Identity):
        return True
    if not isinstance(value, Mapping):
        return False
    return (
        isinstance(value.get("version"), str)
        and isinstance(value.get("anchor"), Mapping)
        and isinstance(value.get("path"), (list, tuple))
        and isinstance(value.get("target"), Mapping)
    )


__all__ = ["is_identity", "validate_identity"]
