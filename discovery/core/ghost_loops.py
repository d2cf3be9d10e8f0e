"""
Ghost-Loop Detection
====================

Recurring event-type structure, found two independent ways:

1. Window patterns: a time window holding at least three events of at least
   two distinct types.
2. Recurring sequences: contiguous runs (length 2-5) of year-sorted events
   whose type sequence repeats elsewhere in the timeline.

INVARIANTS:
===========
- Pure functions of the input events; no I/O, no randomness
- Each distinct type sequence is reported once, seeded by its first occurrence
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ..contracts.events import HistoricalEvent
from .geometry import group_by_time_window


DEFAULT_WINDOW = 50
MIN_SEQUENCE_LENGTH = 2
MAX_SEQUENCE_LENGTH = 5


@dataclass(frozen=True)
class GhostLoopPattern:
    """Mixed-type cluster inside one time window."""
    events: Tuple[HistoricalEvent, ...]
    types: Tuple[str, ...]
    strength: float
    year: int
    window_start: int


@dataclass(frozen=True)
class RecurringSequence:
    """A type sequence that occurs more than once along the timeline."""
    sequence: Tuple[HistoricalEvent, ...]
    types: Tuple[str, ...]
    repetitions: int
    period: float
    confidence: float


class GhostLoopDetector:
    """Window-pattern and recurring-sequence detector."""

    def __init__(
        self,
        window: int = DEFAULT_WINDOW,
        min_length: int = MIN_SEQUENCE_LENGTH,
        max_length: int = MAX_SEQUENCE_LENGTH
    ):
        self._window = window
        self._min_length = min_length
        self._max_length = max_length

    def find_patterns(self, events: Sequence[HistoricalEvent]) -> List[GhostLoopPattern]:
        """Windows with >= 3 events spanning >= 2 types, in first-seen window order."""
        patterns = []
        for window_start, group in group_by_time_window(events, self._window).items():
            types = tuple(dict.fromkeys(e.type.value for e in group))
            if len(group) < 3 or len(types) < 2:
                continue

            patterns.append(GhostLoopPattern(
                events=tuple(group),
                types=types,
                strength=len(group) / (len(types) * 2),
                year=group[0].year,
                window_start=window_start,
            ))
        return patterns

    def find_recurring(self, events: Sequence[HistoricalEvent]) -> List[RecurringSequence]:
        """
        Type sequences repeating more than once across the year-sorted events.

        Occurrences may overlap. Output follows the seed's position, shorter
        sequences first at each position.
        """
        ordered = sorted(events, key=lambda e: e.year)
        types = [e.type.value for e in ordered]

        counts: Dict[Tuple[str, ...], int] = {}
        seeds: Dict[Tuple[str, ...], int] = {}
        for start in range(len(ordered)):
            for length in range(self._min_length, self._max_length + 1):
                if start + length > len(ordered):
                    break
                key = tuple(types[start:start + length])
                counts[key] = counts.get(key, 0) + 1
                seeds.setdefault(key, start)

        recurring = []
        for key, start in seeds.items():
            repetitions = counts[key]
            if repetitions <= 1:
                continue

            seed = tuple(ordered[start:start + len(key)])
            recurring.append(RecurringSequence(
                sequence=seed,
                types=key,
                repetitions=repetitions,
                period=mean_year_delta(seed),
                confidence=min(repetitions / 10, 1.0),
            ))
        return recurring


def mean_year_delta(sequence: Sequence[HistoricalEvent]) -> float:
    """Mean of consecutive year differences; 0 for fewer than two events."""
    if len(sequence) < 2:
        return 0.0
    deltas = [b.year - a.year for a, b in zip(sequence, sequence[1:])]
    return sum(deltas) / len(deltas)
