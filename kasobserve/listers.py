"""In-memory listers, resource syncer and event recorder used by the observers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


class NotFoundError(LookupError):
    """The requested object does not exist."""


class ObjectLister:
    """Holds cluster objects by name and returns them on request."""

    def __init__(self, *args):
        self._objects: dict[str, Any] = {}
        for obj in args:
            self.add(obj)

    def get(self, name):
        """Return the object called ``name`` or raise NotFoundError."""
        try:
            return self._objects[name]
        except KeyError:
            raise NotFoundError(f"{name!r} not found") from None

    def add(self, obj):
        """Add ``obj``, replacing any object of the same name."""
        self._objects[obj.name] = obj

    def delete(self, name):
        """Remove the object called ``name`` if present."""
        self._objects.pop(name, None)


@dataclass(frozen=True)
class ResourceLocation:
    """Namespace and name of a resource; empty when both are blank."""

    namespace: str = ""
    name: str = ""

    def __bool__(self):
        return bool(self.namespace or self.name)


class ResourceSyncer:
    """Records requests to copy config maps and secrets between namespaces.

    ``synced`` maps ``kind/name.namespace`` of each destination to the source
    in the same form, or to ``DELETE`` when the source is empty.
    """

    def __init__(self):
        self.synced: dict[str, str] = {}

    def _record(self, kind, destination, source):
        key = f"{kind}/{destination.name}.{destination.namespace}"
        self.synced[key] = f"{kind}/{source.name}.{source.namespace}" if source else "DELETE"

    def sync_config_map(self, destination, source):
        """Request that ``source`` be copied to ``destination``."""
        self._record("configmap", destination, source)

    def sync_secret(self, destination, source):
        """Request that ``source`` be copied to ``destination``."""
        self._record("secret", destination, source)


@dataclass(frozen=True)
class Event:
    """A recorded event."""

    reason: str
    message: str
    type: str = "Normal"


class InMemoryRecorder:
    """Keeps recorded events in memory, in order."""

    def __init__(self, source):
        self.source = source
        self._events: list[Event] = []

    def event(self, reason, message):
        """Record a normal event."""
        self._events.append(Event(reason, message))

    def events(self):
        """Return the recorded events."""
        return list(self._events)


@dataclass
class Listers:
    """The listers and helpers available to every config observer."""

    api_server_lister: ObjectLister = field(default_factory=ObjectLister)
    auth_config_lister: ObjectLister = field(default_factory=ObjectLister)
    feature_gate_lister: ObjectLister = field(default_factory=ObjectLister)
    infrastructure_lister: ObjectLister = field(default_factory=ObjectLister)
    image_config_lister: ObjectLister = field(default_factory=ObjectLister)
    network_lister: ObjectLister = field(default_factory=ObjectLister)
    proxy_lister: ObjectLister = field(default_factory=ObjectLister)
    scheduler_lister: ObjectLister = field(default_factory=ObjectLister)
    config_map_lister: ObjectLister = field(default_factory=ObjectLister)
    secret_lister: ObjectLister = field(default_factory=ObjectLister)
    config_secret_lister: ObjectLister = field(default_factory=ObjectLister)
    resource_syncer: ResourceSyncer = field(default_factory=ResourceSyncer)
    pre_run_has_synced: list[Callable[[], bool]] = field(default_factory=list)