"""TES address-verification backend client.

TES lookups are long-running: a POST starts the operation and returns a
correlation id, and the operation status endpoint is polled until the
suggestions are ready.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from addressflow.core.errors import ConfigurationError, ProviderError
from addressflow.geocoding.providers import SuggestionProvider
from addressflow.scheduling.polling import OperationPoller, OperationResult
from addressflow.suggestions.models import ProviderShape

logger = logging.getLogger(__name__)

SUGGEST_ON_DEMAND_PATH = "/api/admin/address-verification/suggest-on-demand"
SEARCH_BY_NAME_PATH = "/api/admin/address-verification/search-by-name"
OPERATION_STATUS_PATH = "/api/admin/address-verification/operations/{correlation_id}"


class TesSuggestionProvider(SuggestionProvider):
    """Suggestion provider backed by TES operations."""

    shape = ProviderShape.TES

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        poller: OperationPoller | None = None,
        timeout: float = 10.0,
    ) -> None:
        if client is None:
            if not base_url:
                raise ConfigurationError("TesSuggestionProvider requires TES_BASE_URL")
            client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.client = client
        self.poller = poller or OperationPoller()

    async def suggest(self, free_text: str, country_code: str) -> list[Any]:
        """Free-text lookup; search-by-name only accepts the query text, so
        items tagged with another country are dropped afterwards.
        """
        items = await self.search_by_name(free_text)
        wanted = (country_code or "").upper()
        if not wanted:
            return items
        return [item for item in items if _country_of(item) in ("", wanted)]

    async def suggest_for(self, address: Any, free_text: str) -> list[Any]:
        return await self.suggest_on_demand(address)

    async def suggest_on_demand(self, address: Any) -> list[Any]:
        """Ask TES for suggestions for a structured address.

        Args:
            address: Address model or mapping, sent with camelCase keys

        Returns:
            Raw TES suggestion items, empty unless the operation completed
        """
        if isinstance(address, BaseModel):
            body = address.model_dump(by_alias=True, mode="json")
        else:
            body = dict(address or {})
        if not any(body.values()):
            return []
        correlation_id = await self._start(SUGGEST_ON_DEMAND_PATH, json=body)
        return await self._collect(correlation_id)

    async def search_by_name(self, query: str) -> list[Any]:
        """Ask TES for suggestions matching a free-text name."""
        if not query or not query.strip():
            return []
        correlation_id = await self._start(
            SEARCH_BY_NAME_PATH,
            content=query.strip().encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        return await self._collect(correlation_id)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _start(self, path: str, **kwargs: Any) -> str:
        try:
            response = await self.client.post(path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"TES request to {path} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
                provider=ProviderShape.TES.value,
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"TES request to {path} failed: {e}", provider=ProviderShape.TES.value
            ) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None
        correlation_id = payload.get("correlationId") if isinstance(payload, dict) else None
        if not correlation_id:
            raise ProviderError(
                "TES response is missing correlationId",
                status_code=response.status_code,
                provider=ProviderShape.TES.value,
                details=payload,
            )
        logger.debug(f"Started TES operation {correlation_id} via {path}")
        return str(correlation_id)

    async def _fetch_status(self, correlation_id: str) -> dict[str, Any] | None:
        response = await self.client.get(
            OPERATION_STATUS_PATH.format(correlation_id=correlation_id)
        )
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, dict) else None

    async def _collect(self, correlation_id: str) -> list[Any]:
        operation: OperationResult = await self.poller.wait_for(
            correlation_id, self._fetch_status
        )
        if not operation.completed:
            logger.warning(
                f"TES operation {correlation_id} finished as {operation.status}: "
                f"{operation.error_details}"
            )
            return []
        result = operation.result
        if isinstance(result, dict):
            suggestions = result.get("suggestions") or []
        elif isinstance(result, list):
            suggestions = result
        else:
            suggestions = []
        return [item for item in suggestions if item]


def _country_of(item: Any) -> str:
    code = item.get("countryCode") if isinstance(item, dict) else None
    return str(code or "").strip().upper()
