"""Request bodies for the HTTP surface (camelCase on the wire)."""

from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..contracts.discoveries import DiscoveryParameters
from ..contracts.events import Coordinates, TimeRange


class ParameterFields(BaseModel):
    """Optional analyzer/query parameters; absent fields keep the engine defaults."""
    model_config = ConfigDict(populate_by_name=True)

    time_window_radius: Optional[int] = Field(None, alias="timeWindowRadius")
    synchronicity_threshold: Optional[float] = Field(None, alias="synchronicityThreshold")
    network_density: Optional[float] = Field(None, alias="networkDensity")
    anomaly_detection: Optional[float] = Field(None, alias="anomalyDetection")
    region: Optional[str] = None
    event_types: Optional[List[str]] = Field(None, alias="eventTypes")
    limit: Optional[int] = Field(None, gt=0)
    speed_tier: Optional[str] = Field(None, alias="speedTier")

    def parameters(self, base: Optional[DiscoveryParameters] = None) -> DiscoveryParameters:
        return DiscoveryParameters.from_mapping(
            self.model_dump(by_alias=True, exclude_none=True), base=base
        )


class YearRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_year: int = Field(-1500, alias="startYear")
    end_year: int = Field(-1000, alias="endYear")

    @model_validator(mode="after")
    def _check_range(self):
        if self.start_year > self.end_year:
            raise ValueError(f"startYear {self.start_year} is after endYear {self.end_year}")
        return self

    def time_range(self) -> TimeRange:
        return TimeRange(self.start_year, self.end_year)


class DiscoverRequest(ParameterFields, YearRange):
    """POST /api/discover body. Unknown fields are ignored."""


class EventQueryRequest(YearRange):
    """POST /api/wikidata/query body."""
    region: Optional[str] = None
    event_types: Optional[List[str]] = Field(None, alias="eventTypes")
    limit: int = Field(500, gt=0)

    def parameters(self, base: Optional[DiscoveryParameters] = None) -> DiscoveryParameters:
        return DiscoveryParameters.from_mapping(
            self.model_dump(by_alias=True, exclude_none=True), base=base
        )


class NearbyRequest(YearRange):
    """POST /api/events/nearby body."""
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    radius_km: float = Field(500.0, alias="radiusKm", gt=0)
    limit: int = Field(500, gt=0)

    def center(self) -> Coordinates:
        return Coordinates(self.lat, self.lng)


class ParametersUpdate(BaseModel):
    """POST /api/chronoforge/params body."""
    parameters: ParameterFields = Field(default_factory=ParameterFields)


class PreservationQueryRequest(BaseModel):
    """POST /api/akasha/query body."""
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    type: Optional[str] = None
    min_confidence: Optional[float] = Field(None, alias="minConfidence", ge=0.0, le=1.0)
    limit: int = Field(100, gt=0)
