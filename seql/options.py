"""Per-call options for generation, resolution and the string codec."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import SeqlConfig


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class GeneratorOptions(_Options):
    max_path_depth: int = Field(default=10, ge=1)
    enable_svg_fingerprint: bool = True
    confidence_threshold: float = Field(default=0.1, ge=0.0, le=1.0)
    fallback_to_root: bool = True
    include_utility_classes: bool = False
    max_text_length: int = Field(default=100, ge=1)
    source_tag: str = "seql"

    @classmethod
    def from_config(cls, config: SeqlConfig) -> "GeneratorOptions":
        return cls(
            max_path_depth=config.max_path_depth,
            enable_svg_fingerprint=config.enable_svg_fingerprint,
            confidence_threshold=config.confidence_threshold,
            fallback_to_root=config.fallback_to_root,
            include_utility_classes=config.include_utility_classes,
            max_text_length=config.max_text_length,
            source_tag=config.source_tag,
        )


class ResolverOptions(_Options):
    strict_mode: bool = False
    enable_fallback: bool = True
    max_candidates: int = Field(default=20, ge=1)
    match_urls_by_path_only: bool = True
    base_url: Optional[str] = None

    @classmethod
    def from_config(cls, config: SeqlConfig) -> "ResolverOptions":
        return cls(
            strict_mode=config.strict_mode,
            enable_fallback=config.enable_fallback,
            max_candidates=config.max_candidates,
            match_urls_by_path_only=config.match_urls_by_path_only,
        )


class CodecOptions(_Options):
    max_classes: int = Field(default=6, ge=0)
    max_attributes: int = Field(default=6, ge=0)
    max_text_length: int = Field(default=100, ge=0)
    include_text: bool = True

    @classmethod
    def from_config(cls, config: SeqlConfig) -> "CodecOptions":
        return cls(
            max_classes=config.max_classes,
            max_attributes=config.max_attributes,
            max_text_length=config.max_text_length,
        )


__all__ = ["CodecOptions", "GeneratorOptions", "ResolverOptions"]
