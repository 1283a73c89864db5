r"""
Stowage option descriptors.

Overview
- Arity constants
  • ONE_OR_MORE ("+"), ZERO_OR_MORE ("*"), ZERO_OR_ONE ("?"); any non-negative int is an exact count.
- DescriptorType metaclass
  • derives __typename__ from the class name, exposes __introspectable__ fields as
    read-only properties (see utils.mirror) and provides __repr__/__rich_repr__.
- Descriptor
  • one declared option: names (canonical first), value type, arity, target storage,
    optional count output, and the help metadata a renderer needs (descr, metavar).
  • carries the runtime parse state (consumed, matched_at) that the matching engine
    advances and storage.release() resets.

Metadata (sanitized on construction)
- names: str (space separated) | Iterable[str]; non-empty, no repeats.
- type: ValueType (or its name, e.g. "int").
- nargs: Unset | int (>= 0) | "+" | "*" | "?". Unset means 0 for bool, 1 otherwise.
- target: Scalar | Buffer | Pointer, mandatory.
- count: Unset | Scalar, mirrors the consumed count.
- length: int (>= 0), strings only; 0 copies the whole token, N keeps at most N UTF-8 bytes.
- unique / required: bool.
- descr / metavar: Unset | str, non-empty when provided.

Shape rules
- array: nargs is an int greater than one, or a variable sentinel.
- positional: the first name does not start with one of the prefix characters.
- booleans: nargs 0, Scalar target, never positional.
- Pointer targets only for arrays and strings; Scalar targets never for arrays;
  a Buffer must hold at least the exact arity.
- positional options with an exact arity >= 1 or "+" are required.

Quick example:
    >>> from stowage.storage import ValueType, Pointer
    >>> Descriptor("--files -f", ValueType.STRING, "+", Pointer())
    descriptor(names=('--files', '-f'), type=<ValueType.STRING: 'string'>, nargs='+', ...)
"""
import functools
import operator
import re
from collections.abc import Iterable

from .faults import *
from .storage import *
from .utils import *

ONE_OR_MORE = "+"
ZERO_OR_MORE = "*"
ZERO_OR_ONE = "?"

VARIABLE = (ONE_OR_MORE, ZERO_OR_MORE, ZERO_OR_ONE)


class DescriptorType(type):
    """
    Metaclass giving descriptors read-only metadata and stable representations.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in diagnostics.
    - every name listed in __introspectable__ becomes a property mirroring "_<name>".
    - __displayable__ (if set) narrows what __rich_repr__ yields.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_names(cls, metadata, /):
    """
    Internal: validate and normalize option names.

    - a string is split on whitespace ("--alpha -a" -> ("--alpha", "-a")).
    - any other iterable must yield non-empty strings without whitespace.
    - repeats within the same declaration are rejected.

    Raises
    - EmptyNameError: no names, or an empty name.
    - DuplicateNameError: a name given twice.
    - TypeError: names that are not strings.
    """
    names = metadata["names"]
    if isinstance(names, str):
        names = names.split()
    elif not isinstance(names, Iterable):
        raise TypeError(f"{cls.__typename__} names must be a string or an iterable of strings")

    sanitized = []
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not name:
            raise EmptyNameError(f"{cls.__typename__} names cannot be empty-strings")
        elif any(character.isspace() for character in name):
            raise ValueError(f"{cls.__typename__} names cannot contain whitespace")
        elif name in sanitized:
            raise DuplicateNameError(
                f"{cls.__typename__} names cannot contain duplicates ({name!r})",
                input=name,
            )
        sanitized.append(name)

    if not sanitized:
        raise EmptyNameError(f"{cls.__typename__} must specify at least one name")

    metadata["names"] = tuple(sanitized)


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate the help metadata and the flags.

    - descr/metavar: Unset or non-empty strings (trimmed); Unset becomes None.
    - unique/required: coerced to bool.
    - length: non-negative integer.
    """
    for key in ("descr", "metavar"):
        if not isinstance(value := metadata[key], str | Unset):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
        metadata[key] = coalesce(value)

    if not isinstance(length := metadata["length"], int) or isinstance(length, bool):
        raise TypeError(f"{cls.__typename__} 'length' must be an integer")
    elif length < 0:
        raise ValueError(f"{cls.__typename__} 'length' must be a non-negative integer")

    metadata["unique"] = bool(metadata["unique"])
    metadata["required"] = bool(metadata["required"])


def _sanitize_shape(cls, metadata, /, prefix):
    """
    Internal: validate type, arity, storage and derive the shape flags.

    Checks run in this order, so the first problem found is the one reported:
    arity, target presence, allocation, then every other shape mismatch.

    Raises
    - InvalidArityError: arity that is a bool, negative, or an unknown string.
    - NullTargetError: missing target.
    - InvalidAllocationError: Pointer requested for a non-array, non-string option.
    - ConfigurationError: any other mismatch between type, arity and storage.
    """
    name = metadata["names"][0]

    try:
        type = metadata["type"] if isinstance(metadata["type"], ValueType) else ValueType(metadata["type"])
    except ValueError:
        raise TypeError(f"{cls.__typename__} {name!r} 'type' must be a value type") from None
    metadata["type"] = type

    if isinstance(nargs := metadata["nargs"], bool) or not isinstance(nargs, str | int | Unset):
        raise InvalidArityError(
            f"{cls.__typename__} {name!r} 'nargs' must be a non-negative integer or one of '+', '*', '?'",
            input=name,
        )
    elif isinstance(nargs, str) and nargs not in VARIABLE:
        raise InvalidArityError(
            f"{cls.__typename__} {name!r} 'nargs' must be one of '+', '*', or '?'",
            input=name,
        )
    elif isinstance(nargs, int) and nargs < 0:
        raise InvalidArityError(
            f"{cls.__typename__} {name!r} 'nargs' must be a non-negative integer",
            input=name,
        )
    nargs = metadata["nargs"] = coalesce(nargs, 0 if type is ValueType.BOOL else 1)

    if (target := metadata["target"]) is Unset or target is None:
        raise NullTargetError(f"{cls.__typename__} {name!r} must have a target", input=name)
    elif not isinstance(target, Target):
        raise TypeError(f"{cls.__typename__} {name!r} target must be a Scalar, a Buffer, or a Pointer")

    array = metadata["array"] = nargs in VARIABLE or nargs > 1
    positional = metadata["positional"] = name[0] not in prefix

    if isinstance(target, Pointer) and not array and type is not ValueType.STRING:
        raise InvalidAllocationError(
            f"{cls.__typename__} {name!r} cannot allocate a single {type.value}",
            input=name,
        )

    def misconfigured(message):
        return ConfigurationError(f"{cls.__typename__} {name!r} {message}", input=name)

    if type is ValueType.BOOL:
        if nargs != 0:
            raise misconfigured("is a bool and cannot take arguments")
        if not isinstance(target, Scalar):
            raise misconfigured("is a bool and must have a Scalar target")
        if positional:
            raise misconfigured("is a bool and cannot be positional")

    if isinstance(target, Scalar) and array:
        raise misconfigured("is an array and cannot have a Scalar target")

    if isinstance(target, Buffer) and isinstance(nargs, int) and target.capacity < nargs:
        raise misconfigured(f"needs {nargs} slots but its Buffer holds {target.capacity}")

    if metadata["length"] and type is not ValueType.STRING:
        raise misconfigured("'length' is only allowed for strings")

    if (count := metadata["count"]) is not Unset and count is not None:
        if not isinstance(count, Scalar):
            raise misconfigured("count output must be a Scalar")
        if count is target:
            raise misconfigured("count output cannot be its own target")
    metadata["count"] = coalesce(count)

    for storage in (target, metadata["count"]):
        if storage is not None and storage.owner is not None:
            raise misconfigured(f"target is already bound to option {storage.owner.name!r}")

    metadata["ownership"] = target.ownership

    if positional and (nargs == ONE_OR_MORE or isinstance(nargs, int) and nargs >= 1):
        metadata["required"] = True


class Descriptor(metaclass=DescriptorType):
    """
    One declared option: what it is called, what it accepts and where values go.

    Descriptors are created by Parser.register()/Parser.add_option(); a descriptor
    constructed by hand is validated but not bound to its storage until a parser
    attaches it.

    Properties
    - the names listed in __introspectable__ are read-only mirrors of the sanitized
      metadata.
    - name: the canonical (first) name.
    - capacity: bound on consumed values (None when unbounded).
    - consumed / matched_at / parsed: runtime state of the current parse.
    """

    __introspectable__ = (
        "names",
        "type",
        "nargs",
        "positional",
        "array",
        "ownership",
        "length",
        "unique",
        "required",
        "descr",
        "metavar",
        "target",
        "count",
    )

    __displayable__ = (
        "names",
        "type",
        "nargs",
        "positional",
        "required",
        "ownership",
    )

    def __new__(
            cls,
            names,
            /,
            type=ValueType.STRING,
            nargs=Unset,
            target=Unset,
            count=Unset,
            length=0,
            *,
            prefix="-",
            unique=False,
            required=False,
            descr=Unset,
            metavar=Unset,
    ):
        metadata = {
            "names": names,
            "type": type,
            "nargs": nargs,
            "target": target,
            "count": count,
            "length": length,
            "unique": unique,
            "required": required,
            "descr": descr,
            "metavar": metavar,
        }
        _sanitize_names(cls, metadata)
        _sanitize_metadata(cls, metadata)
        _sanitize_shape(cls, metadata, prefix)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._consumed = 0
        self._matched_at = None
        return self

    @property
    def name(self):
        return self._names[0]

    @property
    def capacity(self):
        match self._nargs:
            case "?":
                return 1
            case "+" | "*":
                return self._target.capacity if isinstance(self._target, Buffer) else None
            case nargs:
                return nargs

    @property
    def consumed(self):
        return self._consumed

    @property
    def matched_at(self):
        return self._matched_at

    @property
    def parsed(self):
        return self._matched_at is not None

    def _attach(self):
        # called once the parser accepted the names; storage is bound from here on
        self._target._bind(self, self._type.zero)
        if self._count is not None:
            self._count._bind(self, 0)
            self._count.value = 0

    def _detach(self):
        for storage in (self._target, self._count):
            if storage is not None:
                storage._owner = Unset


__all__ = (
    # Constants
    "ONE_OR_MORE",
    "ZERO_OR_MORE",
    "ZERO_OR_ONE",

    # Types
    "DescriptorType",
    "Descriptor",
)
