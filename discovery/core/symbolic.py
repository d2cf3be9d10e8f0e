"""
Symbolic Features
=================

Character-hash text embeddings and the similarity measures built on them.

This computes SURFACE similarity of event texts, not meaning. Scores feed
payload fields (semantic similarity, material-culture networks); they never
gate the classifier calls.
"""

from __future__ import annotations
from typing import Dict, List, Sequence
from dataclasses import dataclass
import numpy as np

from ..contracts.events import HistoricalEvent


EMBEDDING_DIMENSIONS = 512
SIMILARITY_THRESHOLD = 0.7
MEMBER_MATCH_THRESHOLD = 0.6


@dataclass(frozen=True)
class SimilarityPair:
    """Two events whose texts embed close together."""
    first: HistoricalEvent
    second: HistoricalEvent
    similarity: float


@dataclass(frozen=True)
class MaterialCulturePattern:
    """
    Shared-text signature of one event type.

    similarity: mean member cosine to the type prototype
    strength: share of members above MEMBER_MATCH_THRESHOLD
    confidence: similarity * strength
    """
    label: str
    similarity: float
    strength: float
    confidence: float
    members: tuple


def event_text(event: HistoricalEvent) -> str:
    return event.description or event.title


class SymbolicProcessor:
    """
    Fixed-size embedding of event text.

    Each character of each word adds 1/(position+1) to the slot
    (code_point * (word_index+1)) mod dimensions; the vector is L2-normalized.
    """

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed(self, text: str) -> np.ndarray:
        vector = np.zeros(self._dimensions, dtype=float)
        for word_index, word in enumerate(text.lower().split()):
            for position, char in enumerate(word):
                vector[(ord(char) * (word_index + 1)) % self._dimensions] += 1.0 / (position + 1)

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm
        return vector

    def embed_events(self, events: Sequence[HistoricalEvent]) -> np.ndarray:
        """(n_events, dimensions) matrix of unit rows (zero rows for empty text)."""
        if not events:
            return np.zeros((0, self._dimensions), dtype=float)
        return np.vstack([self.embed(event_text(e)) for e in events])

    def find_similarities(
        self,
        events: Sequence[HistoricalEvent],
        threshold: float = SIMILARITY_THRESHOLD
    ) -> List[SimilarityPair]:
        """Pairs (i < j) with cosine similarity above threshold, in index order."""
        matrix = self.embed_events(events)
        if len(matrix) < 2:
            return []

        cosine = matrix @ matrix.T
        pairs = []
        for i in range(len(events)):
            for j in range(i + 1, len(events)):
                score = float(cosine[i, j])
                if score > threshold:
                    pairs.append(SimilarityPair(events[i], events[j], score))
        return pairs


class MaterialCulturePatternDetector:
    """
    Per-type prototype matching over symbolic features.

    Types with fewer than min_members events carry no pattern.
    """

    def __init__(
        self,
        processor: SymbolicProcessor = None,
        min_members: int = 2
    ):
        self._processor = processor or SymbolicProcessor()
        self._min_members = min_members

    def find_patterns(self, events: Sequence[HistoricalEvent]) -> List[MaterialCulturePattern]:
        """Patterns by confidence, highest first."""
        by_type: Dict[str, List[HistoricalEvent]] = {}
        for event in events:
            by_type.setdefault(event.type.value, []).append(event)

        patterns = []
        for label, members in by_type.items():
            if len(members) < self._min_members:
                continue

            matrix = self._processor.embed_events(members)
            prototype = matrix.mean(axis=0)
            norm = np.linalg.norm(prototype)
            if norm == 0:
                continue

            scores = matrix @ (prototype / norm)
            similarity = float(np.clip(scores.mean(), 0.0, 1.0))
            strength = float(np.mean(scores > MEMBER_MATCH_THRESHOLD))
            patterns.append(MaterialCulturePattern(
                label=label,
                similarity=similarity,
                strength=strength,
                confidence=similarity * strength,
                members=tuple(members),
            ))

        patterns.sort(key=lambda p: p.confidence, reverse=True)
        return patterns
