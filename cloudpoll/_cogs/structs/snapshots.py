"""
Typed snapshots of the remote resources' states, decoded once per response.

The control plane returns JSON objects (or lists of them) of various shapes.
Instead of inspecting the raw dicts at every place where a field is needed,
the success bodies are decoded into these frozen structures right after
the response is classified. The convergence predicates see only the typed
fields, never the raw bodies.

Absent fields are treated leniently (as "not yet there", e.g. not configured),
but the fields of unexpected types are not: they raise :class:`SnapshotError`,
which is a fatal outcome of a session -- there is no point in retrying
if the control plane talks in a language we do not understand.
"""
import dataclasses
import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Type, TypeVar

import iso8601

from cloudpoll._cogs.clients import errors

_T = TypeVar('_T')

# Turns a decoded JSON body into a typed snapshot (or anything else).
Decoder = Callable[[Any], Any]


class Absent:
    """
    The resource is gone: the read has returned "not found".

    It is a valid state observation only for the resources with "tear-down
    equals absence" semantics, and only if the classifier says so.
    """
    _instance: Optional["Absent"] = None

    def __new__(cls) -> "Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'ABSENT'

    def __bool__(self) -> bool:
        return False


ABSENT = Absent()


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise errors.SnapshotError(f"{what} must be an object, got {type(data).__name__}.")
    return data


def _field(
        data: Mapping[str, Any],
        key: str,
        cls: Type[_T],
        what: str,
        default: Optional[_T] = None,
) -> Optional[_T]:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, cls) or (cls is int and isinstance(value, bool)):
        raise errors.SnapshotError(f"{what}.{key} must be {cls.__name__}, got {value!r}.")
    return value


def _timestamp(data: Mapping[str, Any], key: str, what: str) -> Optional[datetime.datetime]:
    value = _field(data, key, str, what)
    if value is None:
        return None
    try:
        return iso8601.parse_date(value)
    except iso8601.ParseError as e:
        raise errors.SnapshotError(f"{what}.{key} is not a timestamp: {value!r}.") from e


@dataclasses.dataclass(frozen=True)
class Instance:
    """ An instance (a cluster) or a standalone VPC: both are either ready or not. """
    id: Optional[str]
    ready: bool

    @classmethod
    def from_payload(cls, data: Any) -> "Instance":
        data = _mapping(data, 'Instance')
        id_ = data.get('id')
        return cls(
            id=str(id_) if id_ is not None else None,
            ready=bool(_field(data, 'ready', bool, 'Instance', default=False)),
        )


@dataclasses.dataclass(frozen=True)
class Node:
    name: str
    running: Optional[bool] = None
    configured: bool = False

    @classmethod
    def from_payload(cls, data: Any) -> "Node":
        data = _mapping(data, 'Node')
        return cls(
            name=_field(data, 'name', str, 'Node') or '',
            running=_field(data, 'running', bool, 'Node'),
            configured=bool(_field(data, 'configured', bool, 'Node', default=False)),
        )


@dataclasses.dataclass(frozen=True)
class Nodes:
    items: Sequence[Node] = ()

    @classmethod
    def from_payload(cls, data: Any) -> "Nodes":
        if not isinstance(data, list):
            raise errors.SnapshotError(f"Nodes must be a list, got {type(data).__name__}.")
        return cls(items=tuple(Node.from_payload(item) for item in data))

    def find(self, name: str) -> Optional[Node]:
        for node in self.items:
            if node.name == name:
                return node
        return None


@dataclasses.dataclass(frozen=True)
class CustomDomain:
    configured: bool
    hostname: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Any) -> "CustomDomain":
        data = _mapping(data, 'CustomDomain')
        return cls(
            configured=bool(_field(data, 'configured', bool, 'CustomDomain', default=False)),
            hostname=_field(data, 'hostname', str, 'CustomDomain'),
        )


@dataclasses.dataclass(frozen=True)
class Feature:
    """ A network feature of an instance: PrivateLink, VPC-Connect, etc. """
    status: Optional[str]

    @classmethod
    def from_payload(cls, data: Any) -> "Feature":
        data = _mapping(data, 'Feature')
        return cls(status=_field(data, 'status', str, 'Feature'))


@dataclasses.dataclass(frozen=True)
class Peering:
    status: Optional[str]

    @classmethod
    def from_payload(cls, data: Any) -> "Peering":
        data = _mapping(data, 'Peering')
        return cls(status=_field(data, 'status', str, 'Peering'))


@dataclasses.dataclass(frozen=True)
class Job:
    """ An asynchronous job of the control plane; its status is the only thing polled. """
    id: Optional[str]
    status: Optional[str]
    error_message: Optional[str] = None
    resource_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_action: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    @classmethod
    def from_payload(cls, data: Any) -> "Job":
        data = _mapping(data, 'Job')
        return cls(
            id=_field(data, 'id', str, 'Job'),
            status=_field(data, 'status', str, 'Job'),
            error_message=_field(data, 'error_message', str, 'Job'),
            resource_id=_field(data, 'resource_id', str, 'Job'),
            resource_type=_field(data, 'resource_type', str, 'Job'),
            resource_action=_field(data, 'resource_action', str, 'Job'),
            created_at=_timestamp(data, 'created_at', 'Job'),
            updated_at=_timestamp(data, 'updated_at', 'Job'),
        )


@dataclasses.dataclass(frozen=True)
class Plugin:
    name: str
    enabled: bool = False
    required: bool = False

    @classmethod
    def from_payload(cls, data: Any) -> "Plugin":
        data = _mapping(data, 'Plugin')
        return cls(
            name=_field(data, 'name', str, 'Plugin') or '',
            enabled=bool(_field(data, 'enabled', bool, 'Plugin', default=False)),
            required=bool(_field(data, 'required', bool, 'Plugin', default=False)),
        )


@dataclasses.dataclass(frozen=True)
class Plugins:
    items: Sequence[Plugin] = ()

    @classmethod
    def from_payload(cls, data: Any) -> "Plugins":
        if data is None:
            return cls()
        if not isinstance(data, list):
            raise errors.SnapshotError(f"Plugins must be a list, got {type(data).__name__}.")
        return cls(items=tuple(Plugin.from_payload(item) for item in data))

    def find(self, name: str) -> Optional[Plugin]:
        for plugin in self.items:
            if plugin.name == name:
                return plugin
        return None


def as_is(data: Any) -> Any:
    """ No decoding: for the reads where only the success itself matters. """
    return data


def node_named(name: str) -> Decoder:
    """ Decode the list of nodes, but only keep the one of interest (or ``ABSENT``). """
    def decode(data: Any) -> Any:
        node = Nodes.from_payload(data).find(name)
        return node if node is not None else ABSENT
    return decode
