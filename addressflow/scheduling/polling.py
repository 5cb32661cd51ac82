"""Polling of long-running backend operations until they settle."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from addressflow.core.errors import PollingTimeoutError

logger = logging.getLogger(__name__)

COMPLETED = "COMPLETED"
FAILED = "FAILED"

StatusFetcher = Callable[[str], Awaitable[dict[str, Any] | None]]


@dataclass
class OperationResult:
    """Final state of a long-running operation."""

    correlation_id: str
    status: str
    result: Any = None
    error_details: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED


class OperationPoller:
    """Polls an operation status at a fixed interval.

    A missing or malformed status, an HTTP 404 (operation not registered yet)
    and transport errors are logged and retried until the attempt budget is
    spent.
    """

    def __init__(
        self,
        interval: float = 2.0,
        max_attempts: int = 15,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.interval = interval
        self.max_attempts = max(1, max_attempts)
        self._sleep = sleep

    async def wait_for(
        self,
        correlation_id: str,
        fetch_status: StatusFetcher,
        interval: float | None = None,
        max_attempts: int | None = None,
    ) -> OperationResult:
        """Poll until the operation is COMPLETED or FAILED.

        Args:
            correlation_id: Operation identifier returned on submit
            fetch_status: Coroutine function returning the status document
            interval: Optional override of the polling interval in seconds
            max_attempts: Optional override of the attempt budget

        Returns:
            The settled operation

        Raises:
            ValueError: If no correlation id is given
            PollingTimeoutError: If the operation never settled
        """
        if not correlation_id:
            raise ValueError("OperationPoller: correlation_id is required.")

        delay = self.interval if interval is None else interval
        attempts = self.max_attempts if max_attempts is None else max(1, max_attempts)

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                await self._sleep(delay)

            try:
                operation = await fetch_status(correlation_id)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 404:
                    logger.warning(
                        f"Polling for {correlation_id}: received 404 "
                        f"(attempt {attempt}/{attempts})"
                    )
                else:
                    logger.error(
                        f"Polling for {correlation_id}: HTTP {e.response.status_code} "
                        f"on attempt {attempt}"
                    )
                continue
            except httpx.TransportError as e:
                logger.error(f"Polling for {correlation_id}: transport error on attempt {attempt}: {e}")
                continue

            if not operation or not operation.get("status"):
                logger.warning(
                    f"Polling for {correlation_id}: unexpected response, retrying"
                )
                continue

            status = str(operation["status"]).upper()
            logger.debug(
                f"Polling for {correlation_id}: attempt {attempt}/{attempts}, status {status}"
            )

            if status == COMPLETED:
                return OperationResult(
                    correlation_id=correlation_id,
                    status=status,
                    result=_parse_payload(correlation_id, operation.get("responsePayloadJson")),
                    raw=operation,
                )
            if status == FAILED:
                return OperationResult(
                    correlation_id=correlation_id,
                    status=status,
                    error_details=operation.get("errorMessage"),
                    raw=operation,
                )

        raise PollingTimeoutError(correlation_id, attempts)


def _parse_payload(correlation_id: str, payload: Any) -> Any:
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            logger.warning(
                f"Polling for {correlation_id}: completed, but the payload is not JSON: {e}"
            )
    return payload
