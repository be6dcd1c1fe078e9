from __future__ import annotations

from typing import Any, Awaitable, Dict, Mapping, Optional, Protocol, Union, runtime_checkable

from .model import Identity, Record


@runtime_checkable
class RecordStore(Protocol):
    """Underlying store. Methods may be sync or return awaitables."""

    def get(
        self, entity: str, id: str
    ) -> Union[Optional[Record], Awaitable[Optional[Record]]]: ...

    def put(
        self,
        entity: str,
        id: str,
        fields: Mapping[str, Any],
        links: Optional[Mapping[str, Optional[str]]] = None,
    ) -> Union[Record, Awaitable[Record]]: ...

    def delete(self, entity: str, id: str) -> Union[bool, Awaitable[bool]]: ...


@runtime_checkable
class IdentityProvider(Protocol):
    def current_identity(self, request: Any) -> Optional[Identity]: ...


@runtime_checkable
class DecisionLogSink(Protocol):
    def log(self, payload: Dict[str, Any]) -> Union[None, Awaitable[None]]: ...


@runtime_checkable
class MetricsSink(Protocol):
    def inc(self, name: str, labels: Dict[str, str] | None = None) -> None: ...


@runtime_checkable
class MetricsObserve(Protocol):
    def observe(self, name: str, value: float, labels: Dict[str, str] | None = None) -> None: ...
