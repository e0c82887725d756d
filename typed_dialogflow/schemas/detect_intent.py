"""Dialogflow ES v2 ``detectIntent`` request and response bodies."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ─── Request ───────────────────────────────────────────


class TextInput(_WireModel):
    text: str = Field(..., min_length=1)
    language_code: str


class QueryInput(_WireModel):
    text: TextInput


class LatLng(_WireModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class QueryParameters(_WireModel):
    geo_location: Optional[LatLng] = None


class DetectIntentRequest(_WireModel):
    query_input: QueryInput
    query_params: QueryParameters = Field(default_factory=QueryParameters)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ─── Response ──────────────────────────────────────────


class DetectedIntentRef(_WireModel):
    name: str = ""
    display_name: str = ""
    is_fallback: bool = False


class RawDetectionResult(_WireModel):
    """The ``queryResult`` of one detection, exactly as the service sent it."""

    query_text: str = ""
    language_code: str = ""
    parameters: dict[str, JsonValue] = Field(default_factory=dict)
    all_required_params_present: bool = False
    fulfillment_text: str = ""
    intent: Optional[DetectedIntentRef] = None
    intent_detection_confidence: Optional[float] = None

    @field_validator("parameters", mode="before")
    @classmethod
    def _null_parameters(cls, v):
        return {} if v is None else v

    @property
    def intent_name(self) -> str:
        if self.intent is None:
            return ""
        return self.intent.display_name

    @property
    def is_fallback(self) -> bool:
        return self.intent is not None and self.intent.is_fallback


class DetectIntentResponse(_WireModel):
    response_id: str = ""
    query_result: RawDetectionResult
