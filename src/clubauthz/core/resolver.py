from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence

from .errors import RelationshipError, ResolutionError, SchemaError
from .helpers import maybe_await
from .model import Record
from .relctx import EVAL_RECORDS
from .schema import SchemaRegistry

logger = logging.getLogger("clubauthz.resolver")

Fetch = Callable[[str, str], Any]


class RelationshipResolver:
    """Follow one-cardinality links from a record to the record at the end of a path.

    ``fetch(entity, id)`` returns a Record or None and may be sync or async.
    Store failures and timeouts surface as ResolutionError; a link whose id is set
    but whose record is missing raises RelationshipError.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        fetch: Fetch,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self.registry = registry
        self._fetch = fetch
        self.timeout = timeout

    async def fetch(self, entity: str, id: str) -> Optional[Record]:
        memo = EVAL_RECORDS.get()
        key = (entity, id)
        if memo is not None and key in memo:
            return memo[key]
        try:
            if self.timeout is not None:
                rec = await asyncio.wait_for(maybe_await(self._fetch(entity, id)), self.timeout)
            else:
                rec = await maybe_await(self._fetch(entity, id))
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            raise ResolutionError(f"fetch of {entity}/{id} timed out") from e
        except ResolutionError:
            raise
        except Exception as e:
            raise ResolutionError(f"fetch of {entity}/{id} failed: {e}") from e
        if memo is not None:
            memo[key] = rec
        return rec

    async def resolve(self, start: Record, path: Sequence[str]) -> Optional[Record]:
        current = start
        for label in path:
            hop = self.registry.get_relationship(current.entity, label)
            if hop.has != "one":
                raise SchemaError(
                    f"cannot resolve to-many hop {current.entity}.{label} to a single record"
                )
            target_id = current.link(label)
            if target_id is None:
                return None
            nxt = await self.fetch(hop.target, target_id)
            if nxt is None:
                logger.debug(
                    "clubauthz: broken link %s/%s.%s -> %s/%s",
                    current.entity,
                    current.id,
                    label,
                    hop.target,
                    target_id,
                )
                raise RelationshipError(
                    f"broken link: {current.entity}/{current.id}.{label} -> {hop.target}/{target_id}"
                )
            current = nxt
        return current
