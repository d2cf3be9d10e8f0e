"""
Canonical Prompt Generation
===========================

Pure functions for rendering classifier prompts from an event subset.

INVARIANT: Same pattern kind + same events (same order) → same prompt_hash
No runtime state, no provider-specific wording.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple
import hashlib
import json

from discovery.contracts.events import HistoricalEvent
from .contracts import AnalysisRequest, PatternKind


SYSTEM_PROMPT = (
    "You are an expert historian and pattern recognition system specializing in "
    "discovering hidden connections across historical events. Always respond with valid JSON."
)


@dataclass(frozen=True)
class CanonicalPrompt:
    """
    Frozen prompt with hash for tracking.

    Carries the raw events as well, so the heuristic provider can work from
    the same envelope as the remote ones.
    """
    pattern_kind: PatternKind
    fingerprint: str
    prompt_text: str
    prompt_hash: str
    events: Tuple[HistoricalEvent, ...]

    @staticmethod
    def create(request: AnalysisRequest) -> CanonicalPrompt:
        """Factory for creating canonical prompts. This is the ONLY way to create prompts."""
        prompt_text = PromptTemplates.render(request.pattern_kind, request.events)
        return CanonicalPrompt(
            pattern_kind=request.pattern_kind,
            fingerprint=request.fingerprint,
            prompt_text=prompt_text,
            prompt_hash=hashlib.sha256(prompt_text.encode()).hexdigest(),
            events=request.events,
        )


class PromptTemplates:
    """Prompt templates for each pattern kind."""

    @staticmethod
    def render(pattern_kind: PatternKind, events: Sequence[HistoricalEvent]) -> str:
        """Render prompt for given pattern kind."""
        block = PromptTemplates._event_block(events)
        if pattern_kind == PatternKind.SYNCHRONICITY:
            return PromptTemplates._synchronicity_prompt(block)
        elif pattern_kind == PatternKind.NETWORK:
            return PromptTemplates._network_prompt(block)
        elif pattern_kind == PatternKind.COLLAPSE:
            return PromptTemplates._collapse_prompt(block)
        elif pattern_kind == PatternKind.ANOMALY:
            return PromptTemplates._anomaly_prompt(block)
        else:
            raise ValueError(f"Unknown pattern kind: {pattern_kind}")

    @staticmethod
    def _event_block(events: Sequence[HistoricalEvent]) -> str:
        """Canonical event serialization for prompts."""
        return json.dumps([e.prompt_view() for e in events], indent=2, ensure_ascii=False)

    @staticmethod
    def _synchronicity_prompt(block: str) -> str:
        return f"""Analyze these historical events for synchronicities - improbable simultaneous occurrences across disconnected civilizations:

Events:
{block}

Look for:
1. Similar events happening at the same time in unconnected regions
2. Cultural/technological developments appearing simultaneously
3. Collapse or rise patterns occurring in parallel
4. Ideas or innovations emerging independently

Return JSON with this structure:
{{
    "synchronicities": [
        {{
            "events": ["event_id1", "event_id2"],
            "type": "philosophical_awakening|technological|collapse|cultural",
            "description": "Brief description of the synchronicity",
            "probability": 0.0-1.0,
            "significance": "Why this matters historically"
        }}
    ],
    "confidence": 0.0-1.0,
    "explanation": "Overall pattern explanation"
}}"""

    @staticmethod
    def _network_prompt(block: str) -> str:
        return f"""Identify hidden trade, cultural, or communication networks from these historical events:

Events:
{block}

Look for:
1. Material culture spread patterns
2. Technology diffusion routes
3. Trade network indicators
4. Cultural exchange evidence
5. Migration patterns

Return JSON with this structure:
{{
    "networks": [
        {{
            "type": "trade|cultural|migration|military",
            "nodes": ["event title 1", "event title 2"],
            "period": "time_range",
            "evidence": ["evidence1", "evidence2"],
            "strength": 0.0-1.0
        }}
    ],
    "routes": [
        {{
            "from": "location",
            "to": "location",
            "type": "maritime|land|mixed",
            "goods": ["item1", "item2"]
        }}
    ],
    "confidence": 0.0-1.0
}}"""

    @staticmethod
    def _collapse_prompt(block: str) -> str:
        return f"""Analyze these events for civilization collapse patterns and indicators:

Events:
{block}

Look for:
1. Elite overproduction indicators
2. Resource depletion signs
3. Climate stress events
4. Social unrest patterns
5. Military pressure
6. Economic decline
7. Loss of complexity

Return JSON with this structure:
{{
    "indicators": [
        {{
            "type": "elite_overproduction|resource_depletion|climate|social|military|economic",
            "severity": 0.0-1.0,
            "events": ["event_id1", "event_id2"],
            "description": "Specific indicator details"
        }}
    ],
    "riskLevel": 0.0-1.0,
    "pattern": "Type of collapse pattern identified",
    "timeline": "Estimated collapse timeline",
    "parallels": ["Similar historical collapses"]
}}"""

    @staticmethod
    def _anomaly_prompt(block: str) -> str:
        return f"""Identify historical anomalies and unexplained patterns:

Events:
{block}

Look for:
1. Events that don't fit established historical patterns
2. Technological appearances before their supposed invention
3. Unexplained disappearances or appearances
4. Knowledge that seems out of place/time

Return JSON with this structure:
{{
    "anomalies": [
        {{
            "event": "event_id",
            "type": "technological|cultural|unexplained",
            "anomalyScore": 0.0-1.0,
            "description": "What makes this anomalous",
            "possibleExplanations": ["explanation1", "explanation2"]
        }}
    ],
    "confidence": 0.0-1.0
}}"""
