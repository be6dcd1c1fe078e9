from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Tuple, Union

from ..core.model import Identity, Record
from ..core.ports import IdentityProvider

AccessRequest = Tuple[str, str, Optional[Identity], Record]

# build_request(request) -> (entity, operation, identity, target), sync or async
RequestBuilder = Callable[[Any], Union[AccessRequest, Awaitable[AccessRequest]]]


class HeaderIdentityProvider(IdentityProvider):
    """Reads the authenticated user id from a request header set by the auth layer."""

    def __init__(self, header: str = "x-user-id") -> None:
        self.header = header

    def current_identity(self, request: Any) -> Optional[Identity]:
        headers = getattr(request, "headers", None) or {}
        value = headers.get(self.header)
        if not value:
            return None
        return Identity(id=str(value).strip())


def denial_payload(status_code: int) -> dict[str, str]:
    return {"detail": "Unauthorized" if status_code == 401 else "Forbidden"}


def deny_headers(reason: Optional[str], add_headers: bool) -> dict[str, str]:
    if not add_headers or not reason:
        return {}
    return {"X-Clubauthz-Reason": str(reason)}
