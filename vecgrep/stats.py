"""Order statistics over a run's score population."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence


def quantile(sorted_scores: Sequence[float], p: float) -> float:
    """
    Nearest-rank quantile of an ascending sequence.

    The index is ``(n - 1) * p`` rounded half away from zero and clamped
    into range. An empty sequence yields 0.0.
    """
    n = len(sorted_scores)
    if n == 0:
        return 0.0
    idx = int(math.floor((n - 1) * p + 0.5))
    idx = max(0, min(n - 1, idx))
    return float(sorted_scores[idx])


@dataclass(frozen=True)
class ScoreDistribution:
    count: int
    min: float
    p50: float
    p90: float
    p95: float
    p99: float
    p999: float
    p9999: float
    max: float

    @classmethod
    def from_scores(cls, scores: Sequence[float]) -> "ScoreDistribution":
        ordered: List[float] = sorted(scores)
        return cls(
            count=len(ordered),
            min=float(ordered[0]) if ordered else 0.0,
            p50=quantile(ordered, 0.50),
            p90=quantile(ordered, 0.90),
            p95=quantile(ordered, 0.95),
            p99=quantile(ordered, 0.99),
            p999=quantile(ordered, 0.999),
            p9999=quantile(ordered, 0.9999),
            max=float(ordered[-1]) if ordered else 0.0,
        )

    def report_lines(self) -> List[str]:
        """The two diagnostic lines printed after a batch run."""
        return [
            "overall distribution (all lines): "
            f"min {self.min:.3f}  p50 {self.p50:.3f}  p90 {self.p90:.3f}  p95 {self.p95:.3f}  "
            f"p99 {self.p99:.3f}  p99.9 {self.p999:.3f}  max {self.max:.3f}",
            "suggested thresholds for top k% lines: "
            f"5%→{self.p95:.3f}  1%→{self.p99:.3f}  0.1%→{self.p999:.3f}  0.01%→{self.p9999:.3f}",
        ]
