"""Error taxonomy shared by the client and the server."""

from __future__ import annotations


class SensorLinkError(Exception):
    """Base class for every error raised inside SensorLink."""


class PermissionDenied(SensorLinkError):
    pass


class PermissionUnavailable(SensorLinkError):
    """The platform lacks the capability altogether."""


class SensorTimeout(SensorLinkError):
    pass


class NetworkTimeout(SensorLinkError):
    pass


class NetworkFault(SensorLinkError):
    pass


class RemoteStatusError(SensorLinkError):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class CrossOriginRestriction(SensorLinkError):
    pass
