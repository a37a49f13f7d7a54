"""Base model shared by pyhomepanel data models.

Every model is frozen: a snapshot of something that happened (a store
notification, a speech result, a command) is never edited after the fact.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PanelBaseModel(BaseModel):
    """Frozen base model that ignores unknown keys from external payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
