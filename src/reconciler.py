"""
Contact Point Reconciler - Applies declared contact points to the backend.

A logical contact point is one name owning many backend notifier records.
Reconciliation runs unpacking, fetching the current records, applying and
reading, diffing by notifier UID: instances carrying a UID are updated in
place, instances without one are created, and current records that were
not touched are deleted.
"""

import asyncio
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from alerting_client import AlertingClient, APIError, NotFoundError
from config import RetryConfig
from errors import ApplyError, ImportContractError, ImportMissingError
from identifiers import (
    DEFAULT_ORG_ID,
    ResourceIdentifier,
    make_org_resource_id,
    parse_legacy_uids,
    parse_resource_id,
)
from locking import alerting_mutex
from models import ContactPoint
from plugins.base import StatePair
from plugins.registry import NotifierRegistry, get_registry
from retry import RetryTimeoutError, retry_with_backoff
from validation import ConfigurationError, validate_or_raise

logger = logging.getLogger(__name__)


class ReconcilePhase(Enum):
    """Phases of a contact point reconciliation."""

    UNPACKING = "unpacking"
    FETCHING_CURRENT = "fetching current"
    APPLYING = "applying"
    READING = "reading"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ReconcileResult:
    """Outcome of a create or update."""

    resource_id: str
    state: Optional[Dict[str, Any]] = None
    created: int = 0
    updated: int = 0
    deleted: int = 0


class ContactPointReconciler:
    """
    Reconciles logical contact points against one alerting backend.

    Every operation that touches the backend holds the provisioning lock
    of the target organization for its whole duration.
    """

    def __init__(
        self,
        client: AlertingClient,
        registry: Optional[NotifierRegistry] = None,
        retry_config: Optional[RetryConfig] = None,
        shutdown_event: Optional[asyncio.Event] = None,
    ):
        self.client = client
        self.registry = registry or get_registry()
        self.retry_config = retry_config or RetryConfig()
        self.shutdown_event = shutdown_event

    # Public operations

    async def create(self, desired: Dict[str, Any]) -> ReconcileResult:
        """Create a new contact point; no current records are fetched."""
        return await self._reconcile(desired, is_new=True)

    async def update(self, desired: Dict[str, Any]) -> ReconcileResult:
        """Bring an existing contact point in line with ``desired``."""
        return await self._reconcile(desired, is_new=False)

    async def read(
        self, resource_id: str, prior_state: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Read a contact point into its normalized state tree.

        Args:
            resource_id: ``"<orgID>:<name>"`` or a legacy ``uid;uid`` list
            prior_state: Previously declared tree, source of secure fields

        Returns:
            The state tree, or None if the contact point does not exist

        Raises:
            ImportContractError: Legacy UIDs resolve to differently named records
            ImportMissingError: A legacy UID does not exist
        """
        ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
        client = self.client.for_org(ident.org_id)
        async with alerting_mutex(client.lock_key):
            state = await self._read(client, ident, prior_state)
        if state is None:
            logger.warning(
                f"Contact point {resource_id} not found, removing it from state"
            )
        return state

    async def import_state(self, resource_id: str) -> Optional[Dict[str, Any]]:
        """Import an existing contact point, accepting the legacy UID list."""
        logger.info(f"Importing contact point {resource_id}")
        return await self.read(resource_id)

    async def delete(self, resource_id: str) -> int:
        """
        Delete every record of a contact point.

        Returns:
            Number of records deleted; 0 if the contact point was missing
        """
        ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
        client = self.client.for_org(ident.org_id)
        async with alerting_mutex(client.lock_key):
            points = await self._fetch_current(client, ident.name)
            if not points:
                logger.warning(
                    f"Contact point {ident.name} not found, nothing to delete"
                )
                return 0
            for point in points:
                await self._delete_notifier(client, point)
        logger.info(f"Deleted contact point {ident.name} ({len(points)} notifiers)")
        return len(points)

    # Unpacking and packing

    def unpack_contact_points(self, desired: Dict[str, Any]) -> List[StatePair]:
        """
        Pair every declared notifier instance with its backend record.

        Raises:
            ConfigurationError: If ``desired`` does not match the shape
        """
        validate_or_raise(desired, self.registry.configuration_shape(), "contact point")
        name = desired["name"]
        pairs = []
        for codec in self.registry.list_notifiers():
            for instance in desired.get(codec.field) or []:
                pairs.append(
                    StatePair(tf_state=instance, gf_state=codec.unpack(instance, name))
                )
        return pairs

    def pack_contact_points(
        self,
        points: List[ContactPoint],
        prior_state: Optional[Dict[str, Any]],
        org_id: int,
    ) -> Dict[str, Any]:
        """Build the state tree of the records of one contact point."""
        name = points[0].name
        state: Dict[str, Any] = {
            "id": make_org_resource_id(org_id, name),
            "org_id": str(org_id),
            "name": name,
        }
        for point in points:
            codec = self.registry.lookup_by_type_tag(point.type)
            if codec is None:
                logger.debug(
                    f"Skipping notifier {point.uid} of unsupported type {point.type}"
                )
                continue
            state.setdefault(codec.field, []).append(codec.pack(point, prior_state))
        return state

    # Reconciliation

    async def _reconcile(
        self, desired: Dict[str, Any], is_new: bool
    ) -> ReconcileResult:
        state = copy.deepcopy(desired)
        name = state.get("name", "")
        phase = ReconcilePhase.UNPACKING
        try:
            pairs = self.unpack_contact_points(state)
            client = self._client_for(state)
            result = ReconcileResult(
                resource_id=make_org_resource_id(client.org_id, name)
            )

            async with alerting_mutex(client.lock_key):
                current: List[ContactPoint] = []
                if not is_new:
                    phase = ReconcilePhase.FETCHING_CURRENT
                    logger.info(f"Fetching current notifiers of contact point {name}")
                    current = await self._fetch_current(client, name)

                phase = ReconcilePhase.APPLYING
                logger.info(
                    f"Applying {len(pairs)} notifiers to contact point {name} "
                    f"({len(current)} currently present)"
                )
                await self._apply(client, name, pairs, current, result)

                phase = ReconcilePhase.READING
                ident = ResourceIdentifier(org_id=client.org_id, name=name)
                result.state = await self._read(client, ident, state)
        except Exception:
            logger.error(
                f"Contact point {name} {ReconcilePhase.FAILED.value} at {phase.value}"
            )
            raise

        if result.state is not None:
            result.resource_id = result.state["id"]
        logger.info(
            f"Contact point {name} {ReconcilePhase.DONE.value}: "
            f"{result.created} created, {result.updated} updated, "
            f"{result.deleted} deleted"
        )
        return result

    async def _apply(
        self,
        client: AlertingClient,
        name: str,
        pairs: List[StatePair],
        current: List[ContactPoint],
        result: ReconcileResult,
    ) -> None:
        processed = set()
        for pair in pairs:
            uid = pair.uid
            if uid:
                logger.debug(f"Updating {pair.gf_state.type} notifier {uid} of {name}")
                try:
                    await client.update_contact_point(uid, pair.gf_state)
                except APIError as e:
                    raise ApplyError(
                        f"failed to update contact point notifier with UID {uid} "
                        f"of contact point {name}: {e}",
                        name=name,
                        uid=uid,
                    ) from e
                result.updated += 1
            else:
                created = await self._create_notifier(client, name, pair.gf_state)
                uid = created.uid
                result.created += 1

            # The declared instance needs its UID to match the read-back record
            pair.tf_state["uid"] = uid
            pair.gf_state.uid = uid
            processed.add(uid)

        for point in current:
            if point.uid not in processed:
                await self._delete_notifier(client, point)
                result.deleted += 1

    async def _create_notifier(
        self, client: AlertingClient, name: str, point: ContactPoint
    ) -> ContactPoint:
        """Create one notifier, retrying while a new organization warms up."""

        async def attempt() -> ContactPoint:
            return await client.create_contact_point(point)

        def is_retryable(error: Exception) -> bool:
            # Non-default orgs get their alerting subsystem provisioned
            # asynchronously and answer 500 until it is ready
            return (
                client.org_id > DEFAULT_ORG_ID
                and isinstance(error, APIError)
                and error.is_code(500)
            )

        logger.debug(f"Creating {point.type} notifier of {name}")
        try:
            return await retry_with_backoff(
                attempt,
                is_retryable,
                timeout=self.retry_config.timeout,
                base_delay=self.retry_config.base_delay,
                max_delay=self.retry_config.max_delay,
                jitter_factor=self.retry_config.jitter_factor,
                shutdown_event=self.shutdown_event,
                description=f"Creating {point.type} notifier of contact point {name}",
            )
        except (APIError, RetryTimeoutError) as e:
            raise ApplyError(
                f"failed to create {point.type} notifier of contact point {name}: {e}",
                name=name,
            ) from e

    async def _delete_notifier(
        self, client: AlertingClient, point: ContactPoint
    ) -> None:
        logger.debug(f"Deleting {point.type} notifier {point.uid} of {point.name}")
        try:
            await client.delete_contact_point(point.uid)
        except APIError as e:
            raise ApplyError(
                f"failed to remove contact point notifier with UID {point.uid} "
                f"from contact point {point.name}: {e}",
                name=point.name,
                uid=point.uid,
            ) from e

    # Reading

    async def _read(
        self,
        client: AlertingClient,
        ident: ResourceIdentifier,
        prior_state: Optional[Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        points = await self._fetch_current(client, ident.name)
        if not points and ident.is_legacy:
            points = await self._lookup_legacy_uids(client, ident.name)
        if not points:
            return None
        return self.pack_contact_points(points, prior_state, client.org_id)

    async def _fetch_current(
        self, client: AlertingClient, name: str
    ) -> List[ContactPoint]:
        try:
            return await client.list_contact_points(name=name)
        except NotFoundError:
            return []

    async def _lookup_legacy_uids(
        self, client: AlertingClient, value: str
    ) -> List[ContactPoint]:
        """
        Resolve a deprecated ``uid;uid`` identifier to its records.

        Every UID must exist and all records must share one name.
        """
        uids = parse_legacy_uids(value)
        logger.info(f"Looking up contact point by legacy UID list {value}")
        try:
            all_points = await client.list_contact_points()
        except NotFoundError:
            all_points = []

        matched: List[ContactPoint] = []
        for point in all_points:
            if point.uid not in uids:
                continue
            if matched and point.name != matched[0].name:
                first = matched[0]
                raise ImportContractError(
                    f"contact point with UID {point.uid} has a different name "
                    f"({point.name}) than the contact point with UID "
                    f"{first.uid} ({first.name})",
                    name=point.name,
                    uid=point.uid,
                )
            matched.append(point)

        found = {point.uid for point in matched}
        for uid in uids:
            if uid not in found:
                raise ImportMissingError(
                    f"contact point with UID {uid} was not found", uid=uid
                )
        return matched

    def _client_for(self, desired: Dict[str, Any]) -> AlertingClient:
        """
        Pick the client of the organization a desired tree belongs to.

        An org-prefixed ``id`` wins over the client default; an explicit
        ``org_id`` must agree with it.

        Raises:
            ConfigurationError: If ``id`` and ``org_id`` name different orgs
        """
        org_id = desired.get("org_id")
        resource_id = desired.get("id")
        if resource_id:
            ident = parse_resource_id(resource_id, default_org_id=self.client.org_id)
            if ident.has_org:
                if org_id and int(org_id) != ident.org_id:
                    raise ConfigurationError(
                        f"Contact point {resource_id} belongs to organization "
                        f"{ident.org_id}, not {org_id}"
                    )
                return self.client.for_org(ident.org_id)
        if org_id:
            return self.client.for_org(int(org_id))
        return self.client
