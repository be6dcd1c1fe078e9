from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Literal, Mapping, Optional

from .errors import SchemaError

logger = logging.getLogger("clubauthz.schema")

Cardinality = Literal["one", "many"]


class FieldType(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: FieldType
    optional: bool = False
    unique: bool = False
    indexed: bool = False


@dataclass(frozen=True)
class LinkEnd:
    """One side of a relationship: ``entity`` has ``has`` of the other side under ``label``."""

    entity: str
    label: str
    has: Cardinality


@dataclass(frozen=True)
class RelationshipDescriptor:
    name: str
    forward: LinkEnd
    reverse: LinkEnd

    def hop_from(self, entity: str, label: str) -> "LinkHop":
        if self.forward.entity == entity and self.forward.label == label:
            return LinkHop(
                relationship=self.name,
                source=entity,
                label=label,
                target=self.reverse.entity,
                has=self.forward.has,
                reverse_label=self.reverse.label,
            )
        if self.reverse.entity == entity and self.reverse.label == label:
            return LinkHop(
                relationship=self.name,
                source=entity,
                label=label,
                target=self.forward.entity,
                has=self.reverse.has,
                reverse_label=self.forward.label,
            )
        raise SchemaError(f"unknown relationship: {entity}.{label}")


@dataclass(frozen=True)
class LinkHop:
    """Directed view of a relationship as seen from ``source`` through ``label``."""

    relationship: str
    source: str
    label: str
    target: str
    has: Cardinality
    reverse_label: str


@dataclass(frozen=True)
class EntityDescriptor:
    name: str
    fields: Mapping[str, FieldDescriptor]
    links: Mapping[str, LinkHop]

    def has_field(self, name: str) -> bool:
        return name == "id" or name in self.fields


class SchemaRegistry:
    """Immutable catalogue of entities, their fields and relationship edges."""

    def __init__(
        self,
        entities: Mapping[str, EntityDescriptor],
        relationships: Mapping[str, RelationshipDescriptor],
    ) -> None:
        self._entities = MappingProxyType(dict(entities))
        self._relationships = MappingProxyType(dict(relationships))

    # ------------------------------------------------------------------ build

    @classmethod
    def from_declaration(
        cls,
        entities: Mapping[str, Mapping[str, Any]],
        links: Mapping[str, Mapping[str, Mapping[str, str]]],
    ) -> "SchemaRegistry":
        """Build a registry from plain dicts.

        ``entities`` maps entity name to ``{field: "string" | {"type": ..., "optional": ...}}``.
        ``links`` maps relationship name to ``{"forward": {"on", "has", "label"}, "reverse": {...}}``.
        """
        fields_by_entity: Dict[str, Dict[str, FieldDescriptor]] = {}
        for ename, fdecl in entities.items():
            fields_by_entity[ename] = {
                fname: _field_descriptor(ename, fname, decl) for fname, decl in fdecl.items()
            }

        hops: Dict[str, Dict[str, LinkHop]] = {name: {} for name in fields_by_entity}
        relationships: Dict[str, RelationshipDescriptor] = {}
        for rname, ldecl in links.items():
            try:
                fwd = _link_end(rname, ldecl["forward"])
                rev = _link_end(rname, ldecl["reverse"])
            except KeyError as e:
                raise SchemaError(f"relationship {rname!r} is missing {e.args[0]!r}") from None
            rel = RelationshipDescriptor(name=rname, forward=fwd, reverse=rev)
            for end in (fwd, rev):
                if end.entity not in fields_by_entity:
                    raise SchemaError(f"unknown entity: {end.entity} (in relationship {rname!r})")
                if end.label in hops[end.entity] or end.label in fields_by_entity[end.entity]:
                    raise SchemaError(
                        f"duplicate label {end.label!r} on entity {end.entity!r} "
                        f"(relationship {rname!r})"
                    )
                hops[end.entity][end.label] = rel.hop_from(end.entity, end.label)
            relationships[rname] = rel

        descriptors = {
            name: EntityDescriptor(
                name=name,
                fields=MappingProxyType(fields_by_entity[name]),
                links=MappingProxyType(hops[name]),
            )
            for name in fields_by_entity
        }
        reg = cls(descriptors, relationships)
        reg._check_reverse_consistency()
        return reg

    def _check_reverse_consistency(self) -> None:
        for ent in self._entities.values():
            for label, hop in ent.links.items():
                back = self.get_relationship(hop.target, hop.reverse_label)
                if back.target != ent.name or back.reverse_label != label:
                    raise SchemaError(
                        f"inconsistent relationship {hop.relationship!r}: "
                        f"{ent.name}.{label} does not round-trip"
                    )

    # ----------------------------------------------------------------- lookup

    def get_entity(self, name: str) -> EntityDescriptor:
        try:
            return self._entities[name]
        except KeyError:
            raise SchemaError(f"unknown entity: {name}") from None

    def get_relationship(self, entity_name: str, label: str) -> LinkHop:
        ent = self.get_entity(entity_name)
        try:
            return ent.links[label]
        except KeyError:
            raise SchemaError(f"unknown relationship: {entity_name}.{label}") from None

    def has_entity(self, name: str) -> bool:
        return name in self._entities

    def has_field(self, entity_name: str, name: str) -> bool:
        return self.get_entity(entity_name).has_field(name)

    def entity_names(self) -> tuple[str, ...]:
        return tuple(self._entities)

    def relationships(self) -> Mapping[str, RelationshipDescriptor]:
        return self._relationships

    def walk(self, entity_name: str, path: Iterable[str]) -> tuple[LinkHop, ...]:
        """Return the hops for ``path`` starting at ``entity_name``; raises SchemaError."""
        out = []
        current = entity_name
        for label in path:
            hop = self.get_relationship(current, label)
            out.append(hop)
            current = hop.target
        return tuple(out)


def _field_descriptor(entity: str, name: str, decl: Any) -> FieldDescriptor:
    if isinstance(decl, str):
        decl = {"type": decl}
    if not isinstance(decl, Mapping) or "type" not in decl:
        raise SchemaError(f"invalid field declaration for {entity}.{name}")
    try:
        ftype = FieldType(decl["type"])
    except ValueError:
        raise SchemaError(f"unknown field type {decl['type']!r} for {entity}.{name}") from None
    return FieldDescriptor(
        name=name,
        type=ftype,
        optional=bool(decl.get("optional", False)),
        unique=bool(decl.get("unique", False)),
        indexed=bool(decl.get("indexed", False)),
    )


def _link_end(rname: str, decl: Mapping[str, str]) -> LinkEnd:
    has = decl["has"]
    if has not in ("one", "many"):
        raise SchemaError(f"relationship {rname!r}: 'has' must be 'one' or 'many', got {has!r}")
    return LinkEnd(entity=decl["on"], label=decl["label"], has=has)  # type: ignore[arg-type]


# --------------------------------------------------------------------------- #
# Process-wide registry
# --------------------------------------------------------------------------- #

_REGISTRY: Optional[SchemaRegistry] = None
_REGISTRY_LOCK = threading.Lock()


def init_registry(registry: Optional[SchemaRegistry] = None) -> SchemaRegistry:
    """Install the process-wide registry (defaults to the club schema).

    A second call with the same registry (or no argument) is a no-op; installing a
    different one raises SchemaError.
    """
    global _REGISTRY
    with _REGISTRY_LOCK:
        if _REGISTRY is not None:
            if registry is not None and registry is not _REGISTRY:
                raise SchemaError("schema registry is already initialized")
            return _REGISTRY
        if registry is None:
            from ..club.schema import build_registry

            registry = build_registry()
        _REGISTRY = registry
        logger.debug("clubauthz: schema registry initialized (%d entities)", len(registry.entity_names()))
        return _REGISTRY


def get_registry() -> SchemaRegistry:
    if _REGISTRY is None:
        return init_registry()
    return _REGISTRY
