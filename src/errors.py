"""
Reconciliation errors.

Every error carries the resource kind, name and notifier UID (where one
is known) so callers can log and diagnose failures without parsing the
message.
"""

from typing import Optional


class ReconcileError(Exception):
    """Base class for failures while reconciling an alerting resource."""

    def __init__(
        self,
        message: str,
        kind: str = "contact point",
        name: Optional[str] = None,
        uid: Optional[str] = None,
    ):
        self.message = message
        self.kind = kind
        self.name = name
        self.uid = uid
        super().__init__(message)


class ApplyError(ReconcileError):
    """A create, update or delete call failed."""


class ImportContractError(ReconcileError):
    """Records matched by a legacy UID import disagree on a shared attribute."""


class ImportMissingError(ReconcileError):
    """A UID named by a legacy import identifier does not exist."""
