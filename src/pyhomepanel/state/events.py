"""Normalized store notifications.

Every store backend (Firebase stream, MQTT retained topics, in-memory)
converts what it receives into these notifications. Only the snapshot is
allowed to merge them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreSource(StrEnum):
    FIREBASE = "firebase"
    MQTT = "mqtt"
    MEMORY = "memory"


class StoreNotification(BaseModel):
    """A (possibly partial) device record pushed by the store.

    Keys missing from ``data`` carry no information. A key present with
    ``None`` means the store holds no value for that device.
    """

    model_config = ConfigDict(frozen=True)

    source: StoreSource
    data: dict[str, Any] = Field(default_factory=dict, description="Device name to raw stored value")
    path: str = Field(default="/", description="Store path the change was reported at")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
