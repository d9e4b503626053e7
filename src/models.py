"""
Provisioning API models - JSON shapes exchanged with the alerting backend.

Contact points are stored by the backend one record per notifier; the
records of one logical contact point share their ``name``.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactPoint(BaseModel):
    """A single notifier record as stored by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    uid: str = ""
    name: str
    type: str
    settings: Dict[str, Any] = Field(default_factory=dict)
    disable_resolve_message: bool = Field(False, alias="disableResolveMessage")

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for a create/update request. An empty UID is omitted."""
        payload = self.model_dump(by_alias=True)
        if not payload["uid"]:
            del payload["uid"]
        return payload


class TimeRange(BaseModel):
    """Start/end of a daily mute window, in hh:mm."""

    start_time: str
    end_time: str


class TimeInterval(BaseModel):
    """One time interval of a mute timing. Unset fields are ``None``."""

    times: Optional[List[TimeRange]] = None
    weekdays: Optional[List[str]] = None
    days_of_month: Optional[List[str]] = None
    months: Optional[List[str]] = None
    years: Optional[List[str]] = None
    location: Optional[str] = None


class MuteTiming(BaseModel):
    """A named set of time intervals during which notifications are muted."""

    name: str
    time_intervals: List[TimeInterval] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
