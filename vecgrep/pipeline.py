"""Run orchestration: read, embed, score, select and render."""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, IO, Iterable, Iterator, List, Optional

import numpy as np

from .embedder import Embedder
from .errors import InputReadError
from .models import GrepOptions, ScoredLine, Window
from .scoring import normalize, score_matrix
from .selection import Selection, select_threshold, select_top
from .settings import Settings, load_settings
from .stats import ScoreDistribution
from .windows import SEPARATOR, BatchWindowEngine, StreamingWindowEngine

STDIN_HINT = (
    "reading from stdin until EOF. For endless inputs (e.g., tail -f), "
    "use --stream to process incrementally"
)

QUERY_CACHE_SIZE = 32


def read_lines(stream: IO[str]) -> Iterator[str]:
    """Yield lines from a text stream without their line terminators."""
    try:
        for raw in stream:
            if raw.endswith("\n"):
                raw = raw[:-1]
                if raw.endswith("\r"):
                    raw = raw[:-1]
            yield raw
    except (OSError, UnicodeDecodeError) as exc:
        raise InputReadError(f"failed reading input: {exc}") from exc


@dataclass
class BatchResult:
    lines: List[str]
    scores: List[float]
    selection: Selection
    windows: List[Window]
    blocks: List[List[str]]
    output: List[str]
    distribution: ScoreDistribution

    def diagnostics(self) -> List[str]:
        """Summary lines for the diagnostic stream."""
        return [self.selection.summary] + self.distribution.report_lines()


@dataclass
class GrepRunner:
    """Holds the embedder and runs one query over batch or streaming input."""

    embedder: Embedder
    settings: Settings = field(default_factory=load_settings)
    _query_cache: "OrderedDict[str, np.ndarray]" = field(default_factory=OrderedDict, repr=False)
    _cache_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def encode_query(self, query: str) -> np.ndarray:
        """Normalized query vector; the most recent queries are kept."""
        with self._cache_lock:
            if query in self._query_cache:
                self._query_cache.move_to_end(query)
                return self._query_cache[query]

        vector = normalize(self.embedder.embed(query))
        with self._cache_lock:
            self._query_cache[query] = vector
            self._query_cache.move_to_end(query)
            while len(self._query_cache) > QUERY_CACHE_SIZE:
                self._query_cache.popitem(last=False)
        return vector

    def score_lines(self, query: str, lines: List[str], batch_size: int) -> List[float]:
        query_vec = self.encode_query(query)
        embeddings = self.embedder.embed_batch(lines, batch_size=batch_size)
        return score_matrix(query_vec, embeddings, workers=self.settings.workers)

    def select(self, scores: List[float], options: GrepOptions) -> Selection:
        if options.top is not None:
            return select_top(scores, options.top)
        return select_threshold(scores, options.threshold)

    def run_batch(self, lines: Iterable[str], options: GrepOptions) -> BatchResult:
        """Score the whole input, then select and render merged windows."""
        lines = list(lines)
        scores = self.score_lines(options.query, lines, options.batch_size) if lines else []
        selection = self.select(scores, options)

        engine = BatchWindowEngine(options.before, options.after, options.hide_scores)
        for index, (text, score) in enumerate(zip(lines, scores)):
            engine.consume(ScoredLine(index, text, score, selection.mask[index]))
        output = engine.finish()

        return BatchResult(
            lines=lines,
            scores=scores,
            selection=selection,
            windows=list(engine.windows),
            blocks=engine.blocks(),
            output=output,
            distribution=ScoreDistribution.from_scores(scores),
        )

    def run_stream(
        self,
        lines: Iterable[str],
        options: GrepOptions,
        write: Callable[[str], None],
        engine: Optional[StreamingWindowEngine] = None,
    ) -> int:
        """
        Score and render one line at a time.

        Each line is fully handled before the next is pulled from ``lines``.
        Returns the number of lines consumed.
        """
        query_vec = self.encode_query(options.query)
        engine = engine or StreamingWindowEngine(options.before, options.after, options.hide_scores)

        consumed = 0
        for index, text in enumerate(lines):
            embedding = self.embedder.embed_batch([text], batch_size=1)
            score = score_matrix(query_vec, embedding)[0]
            line = ScoredLine(index, text, score, score >= options.threshold)
            for out in engine.consume(line):
                write(out)
            consumed += 1
        for out in engine.finish():
            write(out)
        return consumed


def batch_report(result: BatchResult) -> List[str]:
    """Stdout lines of a batch run: the blocks plus the closing separator."""
    return result.output + [SEPARATOR]
