"""Client for the server-side relay (``POST /relay-send``)."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from sensorlink.core.errors import NetworkFault, NetworkTimeout, RemoteStatusError


@dataclass(frozen=True)
class RelayResponse:
    success: bool
    error: str | None = None


class RelayClient:
    """Asks the relay server to deliver a payload to a device on our behalf."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, timeout: float = 5.0) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def forward(self, payload: dict, target_address: str) -> RelayResponse:
        """Forward one payload. Raises on network faults and non-2xx responses.

        Only a non-2xx answer carrying an ``error`` body is a RemoteStatusError;
        any other non-2xx means the relay itself is broken and raises NetworkFault.
        """
        try:
            resp = await self._http.post(
                f"{self._base_url}/relay-send",
                json={"target_address": target_address, "payload": payload},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as exc:
            raise NetworkTimeout(f"Relay request timed out after {self._timeout:g}s") from exc
        except httpx.RequestError as exc:
            raise NetworkFault(f"Relay unreachable: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not resp.is_success:
            if body.get("error"):
                raise RemoteStatusError(body["error"], status_code=resp.status_code)
            raise NetworkFault(f"Relay responded with status {resp.status_code}")
        return RelayResponse(success=bool(body.get("success")), error=body.get("error"))
