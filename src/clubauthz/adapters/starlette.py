from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Optional

try:
    from starlette.concurrency import run_in_threadpool  # type: ignore[import-not-found]
    from starlette.responses import JSONResponse  # type: ignore[import-not-found]
except Exception:  # pragma: no cover
    JSONResponse = None  # type: ignore[assignment,misc]
    run_in_threadpool = None  # type: ignore[assignment]

from ..core.engine import Authorizer
from ..core.helpers import maybe_await
from ._common import RequestBuilder, denial_payload, deny_headers

logger = logging.getLogger("clubauthz.adapters.starlette")


def require_access(
    authorizer: Authorizer,
    build_request: RequestBuilder,
    add_headers: bool = False,
) -> Callable[..., Any]:
    """
    Starlette guard that works both:
      - as a decorator on an endpoint (returns an async endpoint)
      - as a dependency-like callable: ``deny = await require_access(...)(request)``

    Denials answer 401 (anonymous) or 403 with a generic body. The reason stays in
    the audit log unless ``add_headers`` exposes it as ``X-Clubauthz-Reason``.
    """
    if JSONResponse is None:
        raise RuntimeError("require_access requires 'starlette'. Install with extra: clubauthz[web].")

    async def _dependency(request: Any) -> Optional[Any]:
        entity, operation, identity, target = await maybe_await(build_request(request))
        decision = await authorizer.authorize_async(entity, operation, identity, target)
        if decision.allowed:
            return None
        status = decision.status_code
        logger.debug("clubauthz: denied %s.%s with %d", entity, operation, status)
        return JSONResponse(
            denial_payload(status),
            status_code=status,
            headers=deny_headers(decision.reason, add_headers),
        )

    def _decorator_or_dependency(arg: Any):
        if callable(arg) and not hasattr(arg, "headers"):
            handler = arg

            if inspect.iscoroutinefunction(handler):

                async def _endpoint_async(request: Any):
                    deny = await _dependency(request)
                    if deny is not None:
                        return deny
                    return await handler(request)

                return _endpoint_async

            async def _endpoint_sync(request: Any):
                deny = await _dependency(request)
                if deny is not None:
                    return deny
                return await run_in_threadpool(handler, request)

            return _endpoint_sync

        return _dependency(arg)

    return _decorator_or_dependency
