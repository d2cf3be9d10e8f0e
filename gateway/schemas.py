"""
Classifier Response Schemas
===========================

pydantic models for the four classifier response shapes. Provider output and
fallback output are both validated into these models, so analyzers never see
provider-specific structure.

A response that fails validation is a provider failure (SCHEMA_MISMATCH) and
triggers the fallback.
"""

from __future__ import annotations
from typing import Annotated, Any, Dict, List, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .contracts import PatternKind


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


# Identifiers and labels occasionally come back as numbers
Text = Annotated[str, BeforeValidator(_as_text)]
Score = Annotated[float, Field(ge=0.0, le=1.0)]


class _Schema(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


# =============================================================================
# SYNCHRONICITY
# =============================================================================

class SynchronicityItem(_Schema):
    events: List[Text] = Field(default_factory=list)
    type: Text = "unknown"
    description: Text = ""
    probability: Score
    significance: Text = ""


class SynchronicityResponse(_Schema):
    synchronicities: List[SynchronicityItem]
    confidence: Score
    explanation: Text = ""

    @property
    def quality(self) -> float:
        return self.confidence


# =============================================================================
# NETWORK
# =============================================================================

class NetworkItem(_Schema):
    type: Text = "cultural"
    nodes: List[Text] = Field(default_factory=list)
    period: Text = ""
    evidence: List[Text] = Field(default_factory=list)
    strength: Score


class RouteItem(_Schema):
    from_: Text = Field(default="", alias="from")
    to: Text = ""
    type: Text = ""
    goods: List[Text] = Field(default_factory=list)


class NetworkResponse(_Schema):
    networks: List[NetworkItem]
    routes: List[RouteItem] = Field(default_factory=list)
    confidence: Score

    @property
    def quality(self) -> float:
        return self.confidence


# =============================================================================
# COLLAPSE
# =============================================================================

class CollapseIndicator(_Schema):
    type: Text
    severity: Score
    events: List[Text] = Field(default_factory=list)
    description: Text = ""


class CollapseResponse(_Schema):
    indicators: List[CollapseIndicator]
    risk_level: Score = Field(alias="riskLevel")
    pattern: Text = ""
    timeline: Text = ""
    parallels: List[Text] = Field(default_factory=list)

    @property
    def quality(self) -> float:
        return self.risk_level


# =============================================================================
# ANOMALY
# =============================================================================

class AnomalyItem(_Schema):
    event: Text
    type: Text = "unexplained"
    anomaly_score: Score = Field(alias="anomalyScore")
    description: Text = ""
    possible_explanations: List[Text] = Field(default_factory=list, alias="possibleExplanations")


class AnomalyResponse(_Schema):
    anomalies: List[AnomalyItem]
    confidence: Score

    @property
    def quality(self) -> float:
        return self.confidence


RESPONSE_SCHEMAS: Dict[PatternKind, Type[_Schema]] = {
    PatternKind.SYNCHRONICITY: SynchronicityResponse,
    PatternKind.NETWORK: NetworkResponse,
    PatternKind.COLLAPSE: CollapseResponse,
    PatternKind.ANOMALY: AnomalyResponse,
}


def parse_payload(pattern_kind: PatternKind, data: Any) -> BaseModel:
    """
    Validate decoded JSON against the schema for pattern_kind.

    Raises pydantic.ValidationError on mismatch.
    """
    return RESPONSE_SCHEMAS[pattern_kind].model_validate(data)
