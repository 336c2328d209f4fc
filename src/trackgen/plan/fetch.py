"""Registry client: fetch the latest tracking plan over HTTP.

A single attempt per run. Every failure is reported as a recoverable
PlanFetchError so the pipeline can fall back to the cached plan.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..exceptions import PlanError, PlanFetchError
from .models import RawTrackingPlan

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://platform.segmentapis.com/v1beta"
DEFAULT_TIMEOUT = 30.0


class RegistryClient:
    """Thin async client for the tracking plan registry."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def plan_url(self, workspace_slug: str, plan_id: str) -> str:
        return f"{self.api_url}/workspaces/{workspace_slug}/tracking-plans/{plan_id}"

    async def fetch_tracking_plan(
        self, *, plan_id: str, workspace_slug: str, token: str
    ) -> RawTrackingPlan:
        """Download and decode one tracking plan.

        Raises:
            PlanFetchError: On transport errors, non-2xx responses, or an
                undecodable body.
        """
        url = self.plan_url(workspace_slug, plan_id)
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise PlanFetchError(f"Registry returned HTTP {status}", url=url, status=status) from exc
        except httpx.HTTPError as exc:
            raise PlanFetchError(f"Registry request failed: {exc}", url=url) from exc
        except ValueError as exc:
            raise PlanFetchError("Registry response is not valid JSON", url=url) from exc

        try:
            plan = RawTrackingPlan.from_dict(data)
        except PlanError as exc:
            raise PlanFetchError(f"Registry returned a malformed plan: {exc.message}", url=url) from exc

        logger.debug("Fetched tracking plan %s with %d event definitions", plan.id, len(plan.events))
        return plan
