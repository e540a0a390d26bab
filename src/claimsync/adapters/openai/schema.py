"""Pydantic models for the classifier's structured output."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

type UnlockTypeValue = Literal["new_capability", "improvement", "operational"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ClassificationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    unlock_type: UnlockTypeValue = Field(alias="unlockType")
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    capability: str | None = None
    enables_building: list[str] = Field(default_factory=list, alias="enablesBuilding")

    _normalize_capability = field_validator("capability", mode="before")(_blank_to_none)


def classification_response_format() -> dict[str, Any]:
    """``response_format`` argument requesting ``ClassificationPayload`` JSON."""

    return {
        "type": "json_schema",
        "json_schema": {
            "name": "update_classification",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "unlockType": {
                        "type": "string",
                        "enum": ["new_capability", "improvement", "operational"],
                    },
                    "capability": {"type": ["string", "null"]},
                    "enablesBuilding": {"type": "array", "items": {"type": "string"}},
                    "confidence": {"type": "number"},
                    "reasoning": {"type": "string"},
                },
                "required": [
                    "unlockType",
                    "capability",
                    "enablesBuilding",
                    "confidence",
                    "reasoning",
                ],
                "additionalProperties": False,
            },
        },
    }
