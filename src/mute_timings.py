"""
Mute Timings - Interval codec and reconciler for mute timings.

A mute timing is identified by its name alone. Its declared form uses
``intervals`` with ``times`` as ``start``/``end`` pairs; the backend uses
``time_intervals`` with ``start_time``/``end_time``. Months may be written
by name or by number, and both spellings are treated as the same value.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from alerting_client import AlertingClient, NotFoundError
from identifiers import make_org_resource_id, parse_resource_id
from locking import alerting_mutex
from models import MuteTiming, TimeInterval, TimeRange
from validation import validate_or_raise

logger = logging.getLogger(__name__)

MONTH_NUMBERS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

_MONTH_NAME_PATTERN = re.compile(r"[a-z]+")

_RANGE_LIST = {"type": "array", "items": {"type": "string"}}

MUTE_TIMING_SHAPE: Dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "id": {"type": "string"},
        "org_id": {"type": "string", "pattern": "^[0-9]*$"},
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "The name of the mute timing.",
        },
        "intervals": {
            "type": "array",
            "description": "The time intervals at which to mute notifications.",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "times": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["start", "end"],
                            "additionalProperties": False,
                            "properties": {
                                "start": {"type": "string"},
                                "end": {"type": "string"},
                            },
                        },
                    },
                    "weekdays": _RANGE_LIST,
                    "days_of_month": _RANGE_LIST,
                    "months": _RANGE_LIST,
                    "years": _RANGE_LIST,
                    "location": {"type": "string"},
                },
            },
        },
    },
    "additionalProperties": False,
}


# Month handling


def normalize_month_range(value: str) -> str:
    """Replace month names in a range expression with their numbers."""

    def replace(match: "re.Match[str]") -> str:
        word = match.group(0)
        return str(MONTH_NUMBERS.get(word, word))

    return _MONTH_NAME_PATTERN.sub(replace, value.strip().lower())


def suppress_month_diff(old: str, new: str) -> bool:
    """True if two month range expressions denote the same months."""
    return normalize_month_range(old) == normalize_month_range(new)


def months_equivalent(old: Optional[List[str]], new: Optional[List[str]]) -> bool:
    """True if two month lists match element-wise modulo month spelling."""
    if old is None or new is None:
        return old is new
    if len(old) != len(new):
        return False
    return all(suppress_month_diff(o, n) for o, n in zip(old, new))


# Interval codec


def unpack_intervals(raw: Optional[List[Dict[str, Any]]]) -> List[TimeInterval]:
    """Convert declared intervals to backend TimeIntervals."""
    intervals = []
    for block in raw or []:
        times = block.get("times")
        intervals.append(
            TimeInterval(
                times=(
                    [TimeRange(start_time=t["start"], end_time=t["end"]) for t in times]
                    if times is not None
                    else None
                ),
                weekdays=block.get("weekdays"),
                days_of_month=block.get("days_of_month"),
                months=block.get("months"),
                years=block.get("years"),
                location=block.get("location") or None,
            )
        )
    return intervals


def pack_intervals(
    intervals: List[TimeInterval],
    prior: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Convert backend TimeIntervals to their declared form.

    When the prior declared interval at the same position spells its
    months differently but equivalently, the prior spelling is kept.
    """
    packed = []
    for i, interval in enumerate(intervals):
        block: Dict[str, Any] = {}
        if interval.times is not None:
            block["times"] = [
                {"start": t.start_time, "end": t.end_time} for t in interval.times
            ]
        if interval.weekdays is not None:
            block["weekdays"] = list(interval.weekdays)
        if interval.days_of_month is not None:
            block["days_of_month"] = list(interval.days_of_month)
        if interval.months is not None:
            block["months"] = list(interval.months)
            if prior is not None and i < len(prior):
                prior_months = prior[i].get("months")
                if months_equivalent(prior_months, interval.months):
                    block["months"] = list(prior_months)
        if interval.years is not None:
            block["years"] = list(interval.years)
        if interval.location:
            block["location"] = interval.location
        packed.append(block)
    return packed


class MuteTimingReconciler:
    """Create, read, update and delete mute timings under the provisioning lock."""

    def __init__(self, client: AlertingClient):
        self.client = client

    async def create(self, desired: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create a mute timing and return its state tree."""
        validate_or_raise(desired, MUTE_TIMING_SHAPE, "mute timing")
        client = self._client_for(desired)
        timing = MuteTiming(
            name=desired["name"],
            time_intervals=unpack_intervals(desired.get("intervals")),
        )
        async with alerting_mutex(client.lock_key):
            logger.info(f"Creating mute timing {timing.name}")
            created = await client.create_mute_timing(timing)
            return await self._read(client, created.name, desired)

    async def read(
        self, resource_id: str, prior_state: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Read a mute timing; returns None with a warning if it is missing."""
        ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
        client = self.client.for_org(ident.org_id)
        async with alerting_mutex(client.lock_key):
            state = await self._read(client, ident.name, prior_state)
        if state is None:
            logger.warning(
                f"Mute timing {resource_id} not found, removing it from state"
            )
        return state

    async def update(
        self, resource_id: str, desired: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """
        Replace the intervals of an existing mute timing.

        Raises:
            ValueError: If ``desired`` renames the mute timing
        """
        validate_or_raise(desired, MUTE_TIMING_SHAPE, "mute timing")
        ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
        if desired["name"] != ident.name:
            raise ValueError(
                f"Mute timing name cannot be changed ({ident.name} -> "
                f"{desired['name']}); delete and recreate it instead"
            )
        client = self.client.for_org(ident.org_id)
        timing = MuteTiming(
            name=ident.name,
            time_intervals=unpack_intervals(desired.get("intervals")),
        )
        async with alerting_mutex(client.lock_key):
            logger.info(f"Updating mute timing {ident.name}")
            await client.update_mute_timing(ident.name, timing)
            return await self._read(client, ident.name, desired)

    async def delete(self, resource_id: str) -> bool:
        """Delete a mute timing. Returns False if it was already gone."""
        ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
        client = self.client.for_org(ident.org_id)
        async with alerting_mutex(client.lock_key):
            try:
                await client.delete_mute_timing(ident.name)
            except NotFoundError:
                logger.warning(f"Mute timing {ident.name} not found, nothing to delete")
                return False
        logger.info(f"Deleted mute timing {ident.name}")
        return True

    async def _read(
        self,
        client: AlertingClient,
        name: str,
        prior_state: Optional[Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        try:
            timing = await client.get_mute_timing(name)
        except NotFoundError:
            return None
        prior = (prior_state or {}).get("intervals")
        return {
            "id": make_org_resource_id(client.org_id, timing.name),
            "org_id": str(client.org_id),
            "name": timing.name,
            "intervals": pack_intervals(timing.time_intervals, prior),
        }

    def _client_for(self, desired: Dict[str, Any]) -> AlertingClient:
        org_id = desired.get("org_id")
        if org_id:
            return self.client.for_org(int(org_id))
        return self.client
