"""
Type descriptors: the explicit shape of the value an argument produces.

A TypeDescriptor is one of
- scalar:     a single value of ``type``
- collection: many values of ``type`` gathered into ``container``
              (list, tuple, set or frozenset)
- mapping:    ``key=value`` pairs gathered into a dict of key -> type

describe() turns ordinary annotations (``int``, ``list[int]``,
``tuple[str, ...]``, ``dict[str, int]``, ``int | None``) into descriptors.
Anything it does not recognize becomes a scalar of the annotation itself, so
the conversion registry can still match it exactly or through its origin.
"""
import types
import typing

from .utils import Unset, mirror

_COLLECTIONS = (list, tuple, set, frozenset)


class TypeDescriptor:
    __slots__ = ("_kind", "_type", "_key", "_container")

    kind = mirror("kind")
    type = mirror("type")
    key = mirror("key")
    container = mirror("container")

    def __init__(self, kind, type, /, *, key=Unset, container=Unset):
        if kind not in ("scalar", "collection", "mapping"):
            raise ValueError(f"invalid descriptor kind {kind!r}")
        if kind == "collection" and _container_or_list(container) not in _COLLECTIONS:
            raise TypeError("collection container must be one of list, tuple, set or frozenset")
        if kind == "mapping" and key is Unset:
            raise TypeError("mapping descriptor requires a key type")
        self._kind = kind
        self._type = type
        self._key = key
        self._container = {
            "scalar": Unset,
            "collection": _container_or_list(container),
            "mapping": dict,
        }[kind]

    @classmethod
    def scalar(cls, type, /):
        return cls("scalar", type)

    @classmethod
    def collection(cls, type, /, container=list):
        return cls("collection", type, container=container)

    @classmethod
    def mapping(cls, key, value, /):
        return cls("mapping", value, key=key)

    @property
    def boolean(self):
        return self._kind == "scalar" and self._type is bool

    @property
    def multivalued(self):
        return self._kind != "scalar"

    def build(self, values, /):
        """
        Gather converted values into the final container.

        Scalars return the last value; collections apply their container;
        mappings expect (key, value) pairs and keep the last value per key.
        """
        match self._kind:
            case "scalar":
                return values[-1] if values else None
            case "collection":
                return self._container(values)
            case _:
                return dict(values)

    def __eq__(self, other):
        if not isinstance(other, TypeDescriptor):
            return NotImplemented
        return (self._kind, self._type, self._key, self._container) == (other._kind, other._type, other._key, other._container)

    def __hash__(self):
        return hash((self._kind, self._type, self._key, self._container))

    def __repr__(self):
        name = getattr(self._type, "__name__", repr(self._type))
        match self._kind:
            case "scalar":
                return f"scalar({name})"
            case "collection":
                return f"collection({name}, {self._container.__name__})"
            case _:
                return f"mapping({getattr(self._key, '__name__', repr(self._key))}, {name})"


def _container_or_list(container, /):
    return list if container is Unset else container


def describe(annotation, /):
    """
    Build a TypeDescriptor from an annotation or return a descriptor unchanged.

        describe(int)              -> scalar(int)
        describe(list[int])        -> collection(int, list)
        describe(tuple[str, ...])  -> collection(str, tuple)
        describe(dict[str, float]) -> mapping(str, float)
        describe(int | None)       -> scalar(int)
    """
    if isinstance(annotation, TypeDescriptor):
        return annotation

    origin = typing.get_origin(annotation)
    parameters = typing.get_args(annotation)

    if origin in (typing.Union, types.UnionType):
        members = [member for member in parameters if member is not type(None)]
        if len(members) == 1:
            return describe(members[0])
        return TypeDescriptor.scalar(annotation)

    if annotation in _COLLECTIONS:
        return TypeDescriptor.collection(str, annotation)
    if annotation is dict:
        return TypeDescriptor.mapping(str, str)

    if origin in _COLLECTIONS:
        if origin is tuple and not (len(parameters) == 2 and parameters[1] is Ellipsis):
            if len(set(parameters)) != 1:
                raise TypeError(f"heterogeneous tuple {annotation!r} cannot describe an argument")
        return TypeDescriptor.collection(parameters[0] if parameters else str, origin)

    if origin is dict:
        key, value = parameters if parameters else (str, str)
        return TypeDescriptor.mapping(key, value)

    return TypeDescriptor.scalar(annotation)


__all__ = (
    "TypeDescriptor",
    "describe",
)
