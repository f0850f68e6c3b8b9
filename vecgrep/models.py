"""Shared models for vecgrep."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigError
from .settings import DEFAULT_BATCH_SIZE, DEFAULT_THRESHOLD


@dataclass(frozen=True)
class ScoredLine:
    """One input line with its similarity score and match decision."""

    index: int
    text: str
    score: float
    matched: bool = False


@dataclass(frozen=True)
class Window:
    """Half-open range [start, end) of line indices rendered as one block."""

    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Window start {self.start} is past end {self.end}")

    def __len__(self) -> int:
        return self.end - self.start


class GrepOptions(BaseModel):
    """Per-run options, validated before any line is processed."""

    query: str
    threshold: float = DEFAULT_THRESHOLD
    before: int = Field(default=0, ge=0)
    after: int = Field(default=0, ge=0)
    top: Optional[int] = Field(default=None, ge=0)
    stream: bool = False
    hide_scores: bool = False
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)

    @model_validator(mode="after")
    def check_top_needs_batch(self) -> "GrepOptions":
        if self.top is not None and self.stream:
            raise ValueError("top-N selection needs the whole input and cannot be used with stream mode")
        return self

    @classmethod
    def build(cls, **values) -> "GrepOptions":
        try:
            return cls(**values)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}" for err in exc.errors()
            )
            raise ConfigError(problems) from exc


# API payloads

class GrepRequest(BaseModel):
    query: str
    lines: List[str] = Field(default_factory=list)
    threshold: Optional[float] = None
    top: Optional[int] = Field(default=None, ge=0)
    before: int = Field(default=0, ge=0)
    after: int = Field(default=0, ge=0)
    hide_scores: bool = False


class BlockPayload(BaseModel):
    start: int
    end: int
    lines: List[str] = Field(default_factory=list)


class DistributionPayload(BaseModel):
    min: float = 0.0
    p50: float = 0.0
    p90: float = 0.0
    p95: float = 0.0
    p99: float = 0.0
    p999: float = 0.0
    p9999: float = 0.0
    max: float = 0.0


class GrepResponsePayload(BaseModel):
    output: List[str] = Field(default_factory=list)
    blocks: List[BlockPayload] = Field(default_factory=list)
    matches: int = 0
    summary: str
    distribution: DistributionPayload
