"""Request body models for the persistence API, and target address checks.

Bodies are validated in strict mode: a JSON ``true`` is not a number and
``1`` is not a boolean. Non-finite numbers are rejected.
"""

from __future__ import annotations

import ipaddress
import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# DNS-style host name
_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$")
_BRACKETED_RE = re.compile(r"^\[(?P<host>[^\]]+)\](?::(?P<port>[^:]*))?$")


class SampleFields(BaseModel):
    """Body of ``POST /samples``: one raw location + motion reading."""

    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0, description="Horizontal accuracy in meters")
    accel_x: float
    accel_y: float
    accel_z: float


class LogFields(BaseModel):
    """Body of ``POST /transmission-logs``: the outcome of one delivery attempt."""

    model_config = ConfigDict(strict=True, frozen=True)

    target_address: str = Field(..., min_length=1)
    success: bool
    error_message: str | None = None
    sample_id: int | None = None


def error_detail(exc: ValidationError) -> str:
    """Flatten a pydantic error into ``field: message`` pairs."""
    parts = []
    for error in exc.errors():
        field = ".".join(str(p) for p in error["loc"])
        parts.append(f"{field}: {error['msg']}" if field else error["msg"])
    return "; ".join(parts)


def _valid_port(port: str) -> bool:
    return port.isdigit() and 0 < int(port) < 65536


def validate_target_address(address: str) -> bool:
    """Accept ``host``, ``host:port`` or ``[ipv6]:port``.

    A bare IPv6 address is rejected; it cannot be told apart from host:port
    and does not form a valid URL without brackets.
    """
    bracketed = _BRACKETED_RE.match(address)
    if bracketed:
        port = bracketed.group("port")
        if port is not None and not _valid_port(port):
            return False
        try:
            return ipaddress.ip_address(bracketed.group("host")).version == 6
        except ValueError:
            return False

    if address.count(":") > 1:
        return False
    host, sep, port = address.rpartition(":")
    if not sep:
        host = address
    elif not _valid_port(port):
        return False
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        return bool(_HOSTNAME_RE.match(host))
