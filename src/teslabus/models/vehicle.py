"""Vehicle summary model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from teslabus._constants import ASLEEP_STATUS


class VehicleSummary(BaseModel):
    """One entry of the owner-API ``/api/1/vehicles`` listing.

    Only the fields the poller acts on are typed; the full entry is kept
    in :attr:`raw` and is what ends up in the published snapshot.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id_s: str = Field(default="", validation_alias=AliasChoices("id_s", "id"))
    """Vehicle id used in ``/vehicles/{id}/...`` paths."""
    vin: str = ""
    """Vehicle Identification Number."""
    display_name: str | None = None
    """User-defined vehicle name."""
    status: str = Field(default="", validation_alias=AliasChoices("status", "state"))
    """Connectivity state (``"online"``, ``"asleep"``, ``"offline"``)."""
    in_service: bool = False
    """Whether the vehicle is currently at a service center."""

    raw: dict[str, Any] = Field(default_factory=dict)
    """Full API entry."""

    @property
    def is_unavailable(self) -> bool:
        """Whether no other category can be read right now."""
        return self.status == ASLEEP_STATUS or self.in_service

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        if merged.get("id_s") is None and merged.get("id") is not None:
            merged["id_s"] = str(merged["id"])
        if merged.get("in_service") is None:
            merged["in_service"] = False
        if merged.get("vin") is None:
            merged["vin"] = ""
        for key in ("status", "state"):
            if key in merged and merged[key] is None:
                del merged[key]
        return merged
