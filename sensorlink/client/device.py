"""Transmission client: direct delivery to the device, relay as fallback.

Delivery order for one sample:

1. ``POST http://{address}/sensor-data`` straight to the microcontroller.
2. If that fails in any way, exactly one attempt through the relay.

There are no further retries here; the transmission loop simply tries again
on its next tick.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import structlog

from sensorlink.core.errors import (
    CrossOriginRestriction,
    NetworkFault,
    NetworkTimeout,
    RemoteStatusError,
    SensorLinkError,
)
from sensorlink.core.models import SendResult, SensorSample

if TYPE_CHECKING:
    from sensorlink.client.relay import RelayClient

log = structlog.get_logger()

DEFAULT_TIMEOUT = 5.0
CORS_MESSAGE = "CORS error - device may not allow browser requests"


def device_url(target_address: str) -> str:
    return f"http://{target_address}/sensor-data"


def looks_like_cors(message: str) -> bool:
    lowered = message.lower()
    return "cors" in lowered or "cross-origin" in lowered


class DeviceClient:
    """Sends sensor samples to a microcontroller's HTTP endpoint."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        relay: RelayClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http = http
        self._relay = relay
        self._timeout = timeout

    async def deliver(self, payload: dict, target_address: str) -> None:
        """One direct POST to the device. Raises a SensorLinkError on any failure."""
        try:
            resp = await self._http.post(device_url(target_address), json=payload, timeout=self._timeout)
        except httpx.TimeoutException as exc:
            raise NetworkTimeout(f"Device request timed out after {self._timeout:g}s") from exc
        except httpx.RequestError as exc:
            raise NetworkFault(f"Failed to connect to device: {exc}") from exc

        if not resp.is_success:
            raise RemoteStatusError(
                f"Device responded with status {resp.status_code}",
                status_code=resp.status_code,
            )

    async def send(self, sample: SensorSample, target_address: str) -> SendResult:
        """Send one sample, falling back to the relay once. Never raises."""
        payload = sample.to_device_payload()
        try:
            await self.deliver(payload, target_address)
            log.debug("direct_delivery_succeeded", target=target_address)
            return SendResult(success=True)
        except SensorLinkError as exc:
            direct_error: SensorLinkError = exc
        log.info("direct_delivery_failed", target=target_address,
                 error=str(direct_error), kind=type(direct_error).__name__)

        relay_error: str | None = None
        if self._relay is not None:
            try:
                response = await self._relay.forward(payload, target_address)
            except SensorLinkError as exc:
                log.warning("relay_request_failed", target=target_address, error=str(exc))
                relay_error = str(exc) if isinstance(exc, RemoteStatusError) else None
            else:
                if response.success:
                    log.info("relay_delivery_succeeded", target=target_address)
                    return SendResult(success=True, via_relay=True)
                relay_error = response.error

        return self._failure(direct_error, relay_error)

    def _failure(self, direct_error: SensorLinkError, relay_error: str | None) -> SendResult:
        message = relay_error or str(direct_error) or "Failed to connect to device"
        kind = type(direct_error).__name__
        if looks_like_cors(message):
            message, kind = CORS_MESSAGE, CrossOriginRestriction.__name__
        return SendResult(success=False, error=message, error_kind=kind, via_relay=relay_error is not None)

    async def test_connection(self, target_address: str) -> SendResult:
        """Send an all-zero sample to check the device is reachable."""
        probe = SensorSample(
            latitude=0.0, longitude=0.0, accuracy=None,
            accel_x=0.0, accel_y=0.0, accel_z=0.0,
        )
        return await self.send(probe, target_address)
