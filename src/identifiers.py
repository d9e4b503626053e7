"""
Resource identifiers.

Contact points and mute timings are identified by ``"<orgID>:<name>"``.
Contact points imported from older tooling may instead carry a
semicolon-joined list of notifier UIDs with no organization prefix.
"""

from dataclasses import dataclass
from typing import List, Union

DEFAULT_ORG_ID = 1
ORG_SEPARATOR = ":"
LEGACY_UID_SEPARATOR = ";"


@dataclass(frozen=True)
class ResourceIdentifier:
    """A parsed resource ID."""

    org_id: int
    name: str
    has_org: bool = True

    @property
    def is_legacy(self) -> bool:
        """True when the ID carried no organization prefix."""
        return not self.has_org

    def __str__(self) -> str:
        return make_org_resource_id(self.org_id, self.name)


def make_org_resource_id(org_id: Union[int, str], name: str) -> str:
    """Build the composite ``"<orgID>:<name>"`` identifier."""
    return f"{org_id}{ORG_SEPARATOR}{name}"


def parse_resource_id(
    resource_id: str, default_org_id: int = DEFAULT_ORG_ID
) -> ResourceIdentifier:
    """
    Split a resource ID into organization and name.

    Only a purely numeric prefix is treated as an organization, so names
    that themselves contain ``:`` survive when an org prefix is present.

    Args:
        resource_id: The ID to parse
        default_org_id: Organization used when the ID has no prefix

    Returns:
        A ResourceIdentifier; ``has_org`` is False for unprefixed IDs.

    Raises:
        ValueError: If the ID is empty
    """
    if not resource_id:
        raise ValueError("Resource ID cannot be empty")

    prefix, sep, rest = resource_id.partition(ORG_SEPARATOR)
    if sep and prefix.isdigit() and rest:
        return ResourceIdentifier(org_id=int(prefix), name=rest)
    return ResourceIdentifier(org_id=default_org_id, name=resource_id, has_org=False)


def parse_legacy_uids(value: str) -> List[str]:
    """Split a legacy ``uid;uid;uid`` identifier, dropping blanks."""
    return [uid.strip() for uid in value.split(LEGACY_UID_SEPARATOR) if uid.strip()]
