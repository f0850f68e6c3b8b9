"""
Context-window engines.

Both engines turn a sequence of scored lines into grep-style output: matched
lines (optionally annotated with their score) surrounded by before/after
context, with ``--`` between blocks.

The batch engine sees every line before rendering and merges overlapping
context ranges exactly. The streaming engine renders as lines arrive using
only a ``before``-sized lookbehind, so it cannot know that a later match will
pull earlier lines into the current block. It may emit a separator where the
batch engine would not, and may repeat a line that was already printed as
trailing context when that line is also leading context for the next match.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Sequence

from .models import ScoredLine, Window

SEPARATOR = "--"


def render_line(line: ScoredLine, hide_scores: bool = False) -> str:
    """Format one output line, annotating matches with their score."""
    if line.matched and not hide_scores:
        return f"{line.text}\t[{line.score:.3f}]"
    return line.text


def merge_windows(mask: Sequence[bool], before: int, after: int) -> List[Window]:
    """
    Merge the context ranges of all matches into disjoint blocks.

    Each match ``i`` reaches ``[i - before, i + 1 + after)``, clamped to the
    input. Ranges that overlap or touch are merged, so consecutive windows
    always have at least one unrendered line between them.
    """
    if before < 0 or after < 0:
        raise ValueError("before and after must be non-negative")

    total = len(mask)
    matches = [i for i, hit in enumerate(mask) if hit]
    windows: List[Window] = []

    k = 0
    while k < len(matches):
        i = matches[k]
        start = max(0, i - before)
        end = min(total, i + 1 + after)
        k += 1
        while k < len(matches) and matches[k] - before <= end:
            end = min(total, matches[k] + 1 + after)
            k += 1
        windows.append(Window(start, end))
    return windows


class WindowEngine:
    """Common interface: feed scored lines in order, collect output lines."""

    def __init__(self, before: int = 0, after: int = 0, hide_scores: bool = False):
        if before < 0 or after < 0:
            raise ValueError("before and after must be non-negative")
        self.before = before
        self.after = after
        self.hide_scores = hide_scores

    def consume(self, line: ScoredLine) -> List[str]:
        """Accept the next line; return whatever output it makes final."""
        raise NotImplementedError

    def finish(self) -> List[str]:
        """Signal end of input; return any output still held back."""
        return []

    def render(self, line: ScoredLine) -> str:
        return render_line(line, self.hide_scores)


class BatchWindowEngine(WindowEngine):
    """Buffers the whole input and renders merged windows at the end."""

    def __init__(self, before: int = 0, after: int = 0, hide_scores: bool = False):
        super().__init__(before, after, hide_scores)
        self.lines: List[ScoredLine] = []
        self.windows: List[Window] = []

    def consume(self, line: ScoredLine) -> List[str]:
        if line.index != len(self.lines):
            raise ValueError(f"Expected line {len(self.lines)}, got line {line.index}")
        self.lines.append(line)
        return []

    def finish(self) -> List[str]:
        mask = [line.matched for line in self.lines]
        self.windows = merge_windows(mask, self.before, self.after)

        output: List[str] = []
        previous_end = None
        for window in self.windows:
            if previous_end is not None and window.start != previous_end:
                output.append(SEPARATOR)
            output.extend(self.render(self.lines[k]) for k in range(window.start, window.end))
            previous_end = window.end
        return output

    def blocks(self) -> List[List[str]]:
        """Rendered lines per window, available after ``finish``."""
        return [
            [self.render(self.lines[k]) for k in range(window.start, window.end)]
            for window in self.windows
        ]


@dataclass
class StreamState:
    """Mutable run state of one streaming pass."""

    before: int = 0
    after_remaining: int = 0
    last_line_was_rendered: bool = False
    printed_any: bool = False
    buffer: Deque[ScoredLine] = field(default_factory=deque)

    def __post_init__(self):
        self.buffer = deque(self.buffer, maxlen=self.before)

    @property
    def inside_block(self) -> bool:
        return self.last_line_was_rendered


class StreamingWindowEngine(WindowEngine):
    """One-pass engine holding at most ``before`` lines of lookbehind."""

    def __init__(
        self,
        before: int = 0,
        after: int = 0,
        hide_scores: bool = False,
        state: StreamState | None = None,
    ):
        super().__init__(before, after, hide_scores)
        self.state = state or StreamState(before=before)
        if self.state.buffer.maxlen != before:
            raise ValueError("StreamState buffer size must equal before")

    def consume(self, line: ScoredLine) -> List[str]:
        state = self.state
        output: List[str] = []

        if line.matched:
            if not state.last_line_was_rendered:
                if state.printed_any:
                    output.append(SEPARATOR)
                output.extend(ctx.text for ctx in state.buffer)
            output.append(self.render(line))
            state.printed_any = True
            state.last_line_was_rendered = True
            state.after_remaining = self.after
        elif state.after_remaining > 0:
            output.append(self.render(line))
            state.printed_any = True
            state.last_line_was_rendered = True
            state.after_remaining -= 1
        else:
            state.last_line_was_rendered = False

        if self.before > 0:
            state.buffer.append(line)
        return output
