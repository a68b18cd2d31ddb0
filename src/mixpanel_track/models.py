from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .errors import ValidationError

Timestamp = Union[datetime, int, float]


class MissingField(str, Enum):
    EVENT = "event"
    DISTINCT_ID = "distinct_id"


class OutboundMessage(BaseModel):
    """Wire document sent to the ``/track`` endpoint."""

    model_config = ConfigDict(frozen=True)

    event: str
    properties: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("properties")
    @classmethod
    def freeze_properties(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("properties")
    def serialize_properties(self, value: Mapping[str, Any]) -> Dict[str, Any]:
        return dict(value)

    def to_json(self) -> str:
        return self.model_dump_json()


def epoch_seconds(value: Timestamp) -> int:
    """Whole seconds since the epoch, sub-second precision dropped."""
    if isinstance(value, datetime):
        return math.floor(value.timestamp())
    return math.floor(value)


@dataclass
class TrackingRequest:
    event: Optional[str]
    distinct_id: Optional[str]
    name_tag: Optional[str] = None
    ip: Optional[str] = None
    time: Optional[Timestamp] = None
    properties: Optional[Mapping[str, str]] = None

    def validate(self) -> None:
        # Only None is rejected; empty strings go through untouched.
        if self.event is None:
            raise ValidationError(MissingField.EVENT)
        if self.distinct_id is None:
            raise ValidationError(MissingField.DISTINCT_ID)

    def build_message(self, token: str) -> OutboundMessage:
        self.validate()
        properties: Dict[str, Any] = {"distinct_id": self.distinct_id}
        if self.ip is not None:
            properties["ip"] = self.ip
        properties["token"] = token
        if self.time is not None:
            properties["time"] = epoch_seconds(self.time)
        if self.name_tag is not None:
            properties["mp_name_tag"] = self.name_tag
        if self.properties:
            # Caller keys win over the reserved ones.
            properties.update(self.properties)
        return OutboundMessage(event=self.event, properties=properties)
