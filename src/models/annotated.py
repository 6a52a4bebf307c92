"""
Annotated text models

The result of a conversion: the plain text handed to the grammar checker
plus the run map that traces every plain-text character back to the
Markdown source.
"""

from bisect import bisect_right
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class TextRun:
    """
    One contiguous piece of the plain text and the source it came from

    Prose runs (is_markup=False) copy source characters one-to-one, except
    for decoded entities where a short plain text stands for a longer
    reference. Markup runs replace their source range with filler
    (newlines, a single space, a placeholder token, or nothing).

    Attributes:
        plain_start: Offset of the run in the plain text
        source_start: Offset of the run in the source
        plain_length: Number of plain-text characters
        source_length: Number of source characters consumed
        is_markup: True for filler, False for real prose
    """
    plain_start: int
    source_start: int
    plain_length: int
    source_length: int
    is_markup: bool

    @property
    def plain_end(self) -> int:
        return self.plain_start + self.plain_length

    @property
    def source_end(self) -> int:
        return self.source_start + self.source_length


@dataclass(frozen=True)
class AnnotatedText:
    """
    Plain text plus position map

    Runs partition both the plain text and the source, in order and
    without gaps. Zero-width runs (filler with no plain characters, or
    a synthetic character with no source) are kept so that the source
    side of the map stays exhaustive.

    Attributes:
        source: The original Markdown text
        plain_text: The plain-text rendering
        runs: Position map, ordered by plain_start
    """
    source: str
    plain_text: str
    runs: Tuple[TextRun, ...]

    @cached_property
    def _visibleRuns(self) -> List[TextRun]:
        return [run for run in self.runs if run.plain_length > 0]

    @cached_property
    def _visibleStarts(self) -> List[int]:
        return [run.plain_start for run in self._visibleRuns]

    def run_find(self, plain_offset: int) -> Optional[TextRun]:
        """
        Find the run that contains a plain-text offset

        Args:
            plain_offset: Offset into plain_text

        Returns:
            The run covering the offset, or None if it is out of range
        """
        if plain_offset < 0 or plain_offset >= len(self.plain_text):
            return None
        index = bisect_right(self._visibleStarts, plain_offset) - 1
        if index < 0:
            return None
        run = self._visibleRuns[index]
        if run.plain_start <= plain_offset < run.plain_end:
            return run
        return None

    def originalPosition_get(self, plain_offset: int, is_end: bool = False) -> int:
        """
        Map a plain-text offset back to a source offset

        Offsets inside prose map proportionally. Offsets inside filler map
        to the start of the replaced source range, or to its end when the
        offset is used as the exclusive end of a range (is_end=True).

        Args:
            plain_offset: Offset into plain_text (clamped to its bounds)
            is_end: Treat the offset as an exclusive range end

        Returns:
            Offset into source

        Example:
            >>> text = annotate("# Title")
            >>> text.plain_text
            'Title'
            >>> text.originalPosition_get(0)
            2
        """
        plain_offset = max(0, min(plain_offset, len(self.plain_text)))

        if is_end:
            if plain_offset == 0:
                return self._leadingSource_get()
            run = self.run_find(plain_offset - 1)
            if run is None:
                return len(self.source)
            if run.is_markup or plain_offset == run.plain_end:
                return run.source_end
            return run.source_start + min(plain_offset - run.plain_start, run.source_length)

        run = self.run_find(plain_offset)
        if run is None:
            return len(self.source)
        if run.is_markup:
            return run.source_start
        return run.source_start + min(plain_offset - run.plain_start, run.source_length)

    def originalRange_get(self, plain_start: int, plain_end: int) -> Tuple[int, int]:
        """
        Map a plain-text range (e.g. a grammar diagnostic) to a source range

        Returns:
            (source_start, source_end) with source_end >= source_start
        """
        source_start = self.originalPosition_get(plain_start)
        source_end = self.originalPosition_get(plain_end, is_end=True)
        return source_start, max(source_start, source_end)

    def _leadingSource_get(self) -> int:
        """Source offset where the first plain character comes from"""
        if not self._visibleRuns:
            return 0
        return self._visibleRuns[0].source_start

    def dict_export(self) -> Dict[str, Any]:
        """Export as a JSON-serializable dict"""
        return {
            "plainText": self.plain_text,
            "runs": [
                {
                    "plainStart": run.plain_start,
                    "sourceStart": run.source_start,
                    "plainLength": run.plain_length,
                    "sourceLength": run.source_length,
                    "isMarkup": run.is_markup,
                }
                for run in self.runs
            ],
        }
