"""
Alerting API client - aiohttp client for the alerting provisioning API.

Each method performs a single logical operation. Failures are reported as
APIError (with the HTTP status) or NotFoundError; no retrying happens here.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from config import BackendConfig
from identifiers import DEFAULT_ORG_ID
from models import ContactPoint, MuteTiming

logger = logging.getLogger(__name__)

CONTACT_POINTS_PATH = "/api/v1/provisioning/contact-points"
MUTE_TIMINGS_PATH = "/api/v1/provisioning/mute-timings"


def _mute_timing_path(name: str) -> str:
    return f"{MUTE_TIMINGS_PATH}/{quote(name, safe='')}"


class APIError(Exception):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, status: int, message: str, method: str = "", path: str = ""):
        self.status = status
        self.message = message
        self.method = method
        self.path = path
        super().__init__(f"{method} {path} failed with status {status}: {message}")

    def is_code(self, status: int) -> bool:
        return self.status == status


class NotFoundError(APIError):
    """Raised when the requested resource does not exist."""


class AlertingClient:
    """Client for one organization of an alerting backend."""

    def __init__(
        self,
        url: str,
        auth: str = "",
        org_id: int = DEFAULT_ORG_ID,
        timeout: int = 30,
    ):
        self.url = url.rstrip("/")
        self.auth = auth
        self.org_id = org_id
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: BackendConfig) -> "AlertingClient":
        return cls(
            url=config.url,
            auth=config.auth,
            org_id=config.org_id,
            timeout=config.request_timeout,
        )

    def for_org(self, org_id: int) -> "AlertingClient":
        """Return a client for another organization of the same backend."""
        if org_id == self.org_id:
            return self
        return AlertingClient(
            url=self.url, auth=self.auth, org_id=org_id, timeout=self.timeout
        )

    @property
    def lock_key(self) -> str:
        """Key of the provisioning lock for this backend organization."""
        return f"{self.url}#{self.org_id}"

    # Contact points

    async def list_contact_points(
        self, name: Optional[str] = None
    ) -> List[ContactPoint]:
        """List contact point records, optionally only those named ``name``."""
        params = {"name": name} if name is not None else None
        payload = await self._request("GET", CONTACT_POINTS_PATH, params=params)
        return [ContactPoint.model_validate(p) for p in payload or []]

    async def create_contact_point(self, point: ContactPoint) -> ContactPoint:
        """Create a record; the returned ContactPoint carries the new UID."""
        payload = await self._request(
            "POST", CONTACT_POINTS_PATH, json_body=point.to_payload()
        )
        return ContactPoint.model_validate(payload)

    async def update_contact_point(self, uid: str, point: ContactPoint) -> None:
        await self._request(
            "PUT", f"{CONTACT_POINTS_PATH}/{uid}", json_body=point.to_payload()
        )

    async def delete_contact_point(self, uid: str) -> None:
        await self._request("DELETE", f"{CONTACT_POINTS_PATH}/{uid}")

    # Mute timings

    async def get_mute_timing(self, name: str) -> MuteTiming:
        payload = await self._request("GET", _mute_timing_path(name))
        return MuteTiming.model_validate(payload)

    async def create_mute_timing(self, timing: MuteTiming) -> MuteTiming:
        payload = await self._request(
            "POST", MUTE_TIMINGS_PATH, json_body=timing.to_payload()
        )
        return MuteTiming.model_validate(payload)

    async def update_mute_timing(self, name: str, timing: MuteTiming) -> None:
        await self._request(
            "PUT", _mute_timing_path(name), json_body=timing.to_payload()
        )

    async def delete_mute_timing(self, name: str) -> None:
        await self._request("DELETE", _mute_timing_path(name))

    # Private helper methods

    def _get_headers(self) -> Dict[str, str]:
        """Get HTTP headers for API requests."""
        headers = {
            "Accept": "application/json",
            "X-Grafana-Org-Id": str(self.org_id),
        }
        if ":" in self.auth:
            user, _, password = self.auth.partition(":")
            headers["Authorization"] = aiohttp.BasicAuth(user, password).encode()
        elif self.auth:
            headers["Authorization"] = f"Bearer {self.auth}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform one request and decode the JSON response, if any."""
        url = f"{self.url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        logger.debug(f"{method} {url} (org {self.org_id})")

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method,
                url,
                headers=self._get_headers(),
                params=params,
                json=json_body,
            ) as response:
                text = await response.text()
                if response.status == 404:
                    raise NotFoundError(response.status, text, method, path)
                if response.status >= 400:
                    logger.warning(
                        f"{method} {path} failed: {response.status} - {text}"
                    )
                    raise APIError(response.status, text, method, path)
                if not text:
                    return None
                return json.loads(text)
