from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

try:
    import httpx
except Exception:  # pragma: no cover
    httpx = None  # type: ignore[assignment]

from ..core.errors import ResolutionError
from ..core.model import Record
from ..core.ports import RecordStore
from ..core.schema import SchemaRegistry, get_registry

logger = logging.getLogger("clubauthz.store.http")

# Legacy REST rows store most links as ``<label>Id``; these columns don't follow that.
LEGACY_LINK_COLUMNS: Dict[str, Dict[str, str]] = {
    "payments": {"createdBy": "creator"},
    "documents": {"reviewedBy": "reviewer"},
}


class HTTPRecordStore(RecordStore):
    """Record store backed by the legacy REST API.

    - ``GET {base}/{entity}/{id}``; 404 means the record does not exist.
    - ``PUT {base}/{entity}/{id}`` with ``{**fields, "links": {...}}``.
    - ``DELETE {base}/{entity}/{id}``.

    Pass an ``httpx.AsyncClient`` to get awaitables back; otherwise a sync
    ``httpx.Client`` is used. Transport errors and timeouts raise ResolutionError.
    """

    def __init__(
        self,
        base_url: str,
        *,
        registry: Optional[SchemaRegistry] = None,
        token: Optional[str] = None,
        timeout: float = 2.0,
        client: "httpx.Client | None" = None,
        async_client: "httpx.AsyncClient | None" = None,
        link_columns: Optional[Mapping[str, Mapping[str, str]]] = None,
    ) -> None:
        if httpx is None:
            raise RuntimeError("HTTPRecordStore requires 'httpx' installed.")
        self.base_url = base_url.rstrip("/")
        self.registry = registry or get_registry()
        self.token = token
        self.timeout = timeout
        self.link_columns = dict(LEGACY_LINK_COLUMNS if link_columns is None else link_columns)
        self._client = client
        self._aclient = async_client
        if self._client is None and self._aclient is None:
            self._client = httpx.Client(timeout=timeout)

    # ------------- helpers -------------

    def _headers(self) -> Dict[str, str]:
        h = {"accept": "application/json"}
        if self.token:
            h["authorization"] = f"Bearer {self.token}"
        return h

    def _url(self, entity: str, id: str) -> str:
        return f"{self.base_url}/{entity}/{id}"

    def to_record(self, entity: str, body: Mapping[str, Any]) -> Record:
        """Map a REST row to a Record, lifting link columns out of the fields."""
        ent = self.registry.get_entity(entity)
        renames = self.link_columns.get(entity, {})
        fields: Dict[str, Any] = {}
        links: Dict[str, Optional[str]] = dict(body.get("links") or {})
        for key, value in body.items():
            if key in ("id", "links"):
                continue
            label = renames.get(key)
            if label is None and key.endswith("Id") and key[:-2] in ent.links:
                label = key[:-2]
            if label is None and isinstance(value, Mapping) and key in ent.links:
                label, value = key, value.get("id")
            if label is not None:
                links[label] = None if value is None else str(value)
            else:
                fields[key] = value
        return Record(entity=entity, id=str(body["id"]), fields=fields, links=links)

    def _parse(self, entity: str, resp: Any) -> Optional[Record]:
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        body = resp.json()
        if not isinstance(body, Mapping) or "id" not in body:
            raise ResolutionError(f"unexpected response body for {entity}")
        return self.to_record(entity, body)

    # ------------- RecordStore -------------

    def get(self, entity: str, id: str):
        url = self._url(entity, id)
        if self._aclient is not None:
            aclient = self._aclient

            async def _run() -> Optional[Record]:
                try:
                    resp = await aclient.get(url, headers=self._headers(), timeout=self.timeout)
                    return self._parse(entity, resp)
                except httpx.HTTPError as e:
                    logger.warning("clubauthz: GET %s failed: %s", url, e)
                    raise ResolutionError(str(e)) from e

            return _run()

        assert self._client is not None
        try:
            resp = self._client.get(url, headers=self._headers(), timeout=self.timeout)
            return self._parse(entity, resp)
        except httpx.HTTPError as e:
            logger.warning("clubauthz: GET %s failed: %s", url, e)
            raise ResolutionError(str(e)) from e

    def put(
        self,
        entity: str,
        id: str,
        fields: Mapping[str, Any],
        links: Optional[Mapping[str, Optional[str]]] = None,
    ):
        url = self._url(entity, id)
        body = {**dict(fields), "links": dict(links or {})}
        if self._aclient is not None:
            aclient = self._aclient

            async def _run() -> Record:
                resp = await aclient.put(url, json=body, headers=self._headers(), timeout=self.timeout)
                resp.raise_for_status()
                return Record(entity, id, dict(fields), dict(links or {}))

            return _run()

        assert self._client is not None
        resp = self._client.put(url, json=body, headers=self._headers(), timeout=self.timeout)
        resp.raise_for_status()
        return Record(entity, id, dict(fields), dict(links or {}))

    def delete(self, entity: str, id: str):
        url = self._url(entity, id)
        if self._aclient is not None:
            aclient = self._aclient

            async def _run() -> bool:
                resp = await aclient.delete(url, headers=self._headers(), timeout=self.timeout)
                if resp.status_code == 404:
                    return False
                resp.raise_for_status()
                return True

            return _run()

        assert self._client is not None
        resp = self._client.delete(url, headers=self._headers(), timeout=self.timeout)
        if resp.status_code == 404:
            return False
        resp.raise_for_status()
        return True
