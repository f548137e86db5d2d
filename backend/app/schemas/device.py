"""Device Schemas — location fixes and permission grants reported by the client."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.core.snapshot_codec import parse_timestamp


class LocationReport(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    fixed_at: datetime | None = None

    @field_validator("fixed_at")
    @classmethod
    def fixed_at_utc(cls, v: datetime | None) -> datetime | None:
        """Naive device timestamps are taken as UTC."""
        return parse_timestamp(v)


class PermissionsUpdate(BaseModel):
    """Partial update: omitted flags keep their current value."""
    notifications_permitted: bool | None = None
    location_permitted: bool | None = None
    push_token: str | None = Field(None, max_length=512)

    @field_validator("push_token")
    @classmethod
    def strip_token(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("push_token cannot be empty or whitespace")
        return v


class PermissionsResponse(BaseModel):
    notifications_permitted: bool
    location_permitted: bool
    permitted: bool
    push_registered: bool
