"""Turning per-line scores into a match mask."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class Selection:
    mask: List[bool]
    count: int
    summary: str


def select_threshold(scores: Sequence[float], threshold: float) -> Selection:
    """Match every line whose score is at least ``threshold``."""
    mask = [score >= threshold for score in scores]
    count = sum(mask)
    if count == 0:
        summary = f"no matches above threshold {threshold:.2f}"
    else:
        summary = f"matches: {count} (threshold {threshold:.2f})"
    return Selection(mask=mask, count=count, summary=summary)


def select_top(scores: Sequence[float], top_n: int) -> Selection:
    """
    Match the ``top_n`` highest-scoring lines.

    Equal scores are ordered by line index, so the earlier line wins a tie.
    """
    if top_n < 0:
        raise ValueError("top_n must be non-negative")
    n = min(top_n, len(scores))
    ranked = sorted(range(len(scores)), key=lambda i: (-scores[i], i))
    chosen = ranked[:n]

    mask = [False] * len(scores)
    for idx in chosen:
        mask[idx] = True

    min_selected = min((scores[i] for i in chosen), default=0.0)
    summary = f"selected top {n} lines by similarity (min selected score {min_selected:.3f})"
    return Selection(mask=mask, count=n, summary=summary)
