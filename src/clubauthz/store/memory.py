from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.errors import SchemaError
from ..core.model import Record
from ..core.ports import RecordStore
from ..core.schema import SchemaRegistry, get_registry

logger = logging.getLogger("clubauthz.store")


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store validated against the schema registry.

    Only one-cardinality link labels are stored on a record; the "many" side is
    answered by :meth:`linked`, so a forward link and its reverse always agree.
    Deleting a record does not cascade.
    """

    def __init__(self, registry: Optional[SchemaRegistry] = None) -> None:
        self.registry = registry or get_registry()
        self._records: Dict[Tuple[str, str], Record] = {}
        self._lock = threading.RLock()

    def get(self, entity: str, id: str) -> Optional[Record]:
        with self._lock:
            return self._records.get((entity, id))

    def put(
        self,
        entity: str,
        id: str,
        fields: Mapping[str, Any],
        links: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Record:
        ent = self.registry.get_entity(entity)
        for name in fields:
            if not ent.has_field(name):
                raise SchemaError(f"unknown field: {entity}.{name}")
        for label in links or {}:
            hop = self.registry.get_relationship(entity, label)
            if hop.has != "one":
                raise SchemaError(
                    f"{entity}.{label} is a to-many link; set it from the {hop.target} side"
                )
        rec = Record(entity=entity, id=id, fields=dict(fields), links=dict(links or {}))
        with self._lock:
            self._records[(entity, id)] = rec
        return rec

    def delete(self, entity: str, id: str) -> bool:
        with self._lock:
            return self._records.pop((entity, id), None) is not None

    def linked(self, entity: str, id: str, label: str) -> List[Record]:
        """Records reachable from ``entity/id`` through ``label`` (either cardinality)."""
        hop = self.registry.get_relationship(entity, label)
        one_to_one = self.registry.get_relationship(hop.target, hop.reverse_label).has == "one"
        with self._lock:
            if hop.has == "one":
                source = self._records.get((entity, id))
                target_id = source.link(label) if source is not None else None
                if target_id is not None:
                    target = self._records.get((hop.target, target_id))
                    return [target] if target is not None else []
                if not one_to_one:
                    return []
                # one-to-one links may be set from the other side only
                for (ename, _), rec in self._records.items():
                    if ename == hop.target and rec.link(hop.reverse_label) == id:
                        return [rec]
                return []
            return [
                rec
                for (ename, _), rec in self._records.items()
                if ename == hop.target and rec.link(hop.reverse_label) == id
            ]

    def all(self, entity: str) -> List[Record]:
        with self._lock:
            return [rec for (ename, _), rec in self._records.items() if ename == entity]

    @classmethod
    def from_fixture(
        cls, data: Mapping[str, List[Mapping[str, Any]]], registry: Optional[SchemaRegistry] = None
    ) -> "InMemoryRecordStore":
        """Load ``{entity: [{"id": ..., "links": {...}, **fields}]}``."""
        store = cls(registry)
        for entity, rows in data.items():
            for row in rows:
                row = dict(row)
                try:
                    rid = str(row.pop("id"))
                except KeyError:
                    raise SchemaError(f"fixture row for {entity} has no 'id'") from None
                links = row.pop("links", None) or {}
                store.put(entity, rid, row, links)
        logger.debug("clubauthz: loaded fixture with %d records", len(store._records))
        return store
