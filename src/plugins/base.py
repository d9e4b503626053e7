"""
Core plugin types and dataclasses.

This module contains shared types used across the notifier plugin system.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple
import logging

from models import ContactPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotifierDescriptor:
    """Static metadata for one notifier kind."""

    field: str  # external configuration group, e.g. "slack"
    type_tag: str  # backend discriminator, e.g. "slack"
    description: str
    secure_fields: Tuple[str, ...] = ()


@dataclass
class StatePair:
    """
    A declared notifier instance paired with its backend representation.

    ``tf_state`` is exactly what the user declared (plus the UID once
    known); ``gf_state`` is the ContactPoint ready for the API.
    """

    tf_state: Dict[str, Any]
    gf_state: ContactPoint

    @property
    def uid(self) -> str:
        return self.tf_state.get("uid") or ""
