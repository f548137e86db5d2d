"""Reminder Schemas — ledger views, config updates and delivery results.

Invariants:
    - ConfigUpdate is partial; cross-field rules are enforced by ReminderConfig.validate()
    - Durations travel as days (retention) and hours (dedup), matching the settings
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from app.core.domain_types import OverlapPolicy, ReminderState


class ActiveReminderResponse(BaseModel):
    event_id: str
    notified_at: datetime
    state: ReminderState


class ConfigUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lead_minutes: float | None = Field(None, gt=0)
    tolerance_minutes: float | None = Field(None, gt=0)
    radius_km: float | None = Field(None, gt=0)
    retention_days: float | None = Field(None, gt=0)
    dedup_hours: float | None = Field(None, gt=0)
    tick_interval_seconds: float | None = Field(None, gt=0)
    location_timeout_seconds: float | None = Field(None, gt=0)
    tick_timeout_seconds: float | None = Field(None, gt=0)
    overlap_policy: OverlapPolicy | None = None

    def to_changes(self) -> dict:
        """Keyword changes for ReminderScheduler.configure()."""
        changes = self.model_dump(
            exclude={"retention_days", "dedup_hours"}, exclude_none=True,
        )
        if self.retention_days is not None:
            changes["retention_period"] = timedelta(days=self.retention_days)
        if self.dedup_hours is not None:
            changes["dedup_window"] = timedelta(hours=self.dedup_hours)
        return changes


class DeliveryResponse(BaseModel):
    status: str
    reason: str | None = None
