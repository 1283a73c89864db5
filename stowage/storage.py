r"""
Stowage value coercion and storage targets.

Overview
- ValueType: closed set of value kinds an option can carry
  (bool, int, uint, float, double, string), each with its zero value.
- Ownership: who owns the memory a target exposes (caller or engine).
- Targets (closed sum type)
  • Scalar: caller-owned single cell (`.value`). Release restores its default.
  • Buffer: caller-owned fixed-capacity array (`.values`). Release zeroes the used region.
  • Pointer: engine-allocated storage (`.value`), None until the first write, then a list
    (array options) or a str (single string options). Release sets it back to None.
- convert(type, token): textual prefix parsing with C-like "nothing consumed" failure.
- write_value(descriptor, token): bounds check, conversion, storage write, count mirror.
- release(descriptor): idempotent reset of a descriptor's target and runtime state.

Conversion rules
- int: optional whitespace, optional sign, base-10 digits. Trailing characters are
  ignored ("12abc" -> 12) as long as at least one digit was consumed.
- uint: same as int, but only a '+' sign is accepted.
- float/double: digits, optional fraction, optional exponent, or inf/infinity/nan
  (case-insensitive), always with '.' as the decimal separator. float values are
  rounded to single precision; values too large for it become a signed infinity.
- string: taken as-is, cut to at most `length` UTF-8 bytes when one is set
  (never in the middle of a character).
- bool: no token; the option itself is the signal.

Quick example:
    >>> convert(ValueType.INT, "42")
    42
    >>> convert(ValueType.DOUBLE, " 2.5e1x")
    25.0
"""
import math
import re
import struct
from enum import Enum

from .faults import *
from .utils import *

_INTEGER = re.compile(r"\s*([+-]?[0-9]+)", re.ASCII)
_UNSIGNED = re.compile(r"\s*(\+?[0-9]+)", re.ASCII)
_DECIMAL = re.compile(
    r"\s*([+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan))",
    re.ASCII | re.IGNORECASE,
)


class ValueType(Enum):
    """
    value kind carried by an option.

    the value is the display name used in messages ("cannot parse 'x' as int").
    """
    BOOL = "bool"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"

    @property
    def zero(self):
        """neutral value a caller-owned cell falls back to."""
        return {
            ValueType.BOOL: False,
            ValueType.INT: 0,
            ValueType.UINT: 0,
            ValueType.FLOAT: 0.0,
            ValueType.DOUBLE: 0.0,
            ValueType.STRING: "",
        }[self]


class Ownership(Enum):
    CALLER = "caller"
    ENGINE = "engine"


class Target:
    """
    base of the storage targets.

    a target is bound to exactly one descriptor at registration; the binding is
    what gives it a value type (and therefore a zero value).
    """
    ownership = Unset

    def __init__(self):
        self._owner = Unset
        self._zero = None

    @property
    def owner(self):
        """descriptor this target is bound to (None until registration)."""
        return coalesce(self._owner)

    def _bind(self, descriptor, zero, /):
        if self._owner is not Unset and self._owner is not descriptor:
            raise ConfigurationError(
                "%s target is already bound to option %r" % (type(self).__name__.lower(), self._owner.name),
                code=FaultCode.CONFIGURATION,
            )
        self._owner = descriptor
        self._zero = zero

    def _clear(self, used, /):
        raise NotImplementedError

    def __rich_repr__(self):
        yield "ownership", self.ownership.value
        yield "owner", None if self._owner is Unset else self._owner.name


class Scalar(Target):
    """
    caller-owned single cell.

    `default` is what the cell holds before any parse and after a release; when
    omitted, the zero value of the option type is used once the cell is bound.
    """
    ownership = Ownership.CALLER

    def __init__(self, default=Unset):
        super().__init__()
        self._default = default
        self.value = coalesce(default)

    @property
    def default(self):
        return coalesce(self._default, self._zero)

    def _bind(self, descriptor, zero, /):
        super()._bind(descriptor, zero)
        self.value = self.default

    def _clear(self, used, /):
        self.value = self.default

    def __repr__(self):
        return "Scalar(value=%r)" % (self.value,)

    def __rich_repr__(self):
        yield "value", self.value
        yield from super().__rich_repr__()


class Buffer(Target):
    """
    caller-owned fixed-capacity array.

    `values` always holds `capacity` slots; slots past the descriptor's consumed
    count keep the zero value of the option type.
    """
    ownership = Ownership.CALLER

    def __init__(self, capacity):
        super().__init__()
        if not isinstance(capacity, int) or isinstance(capacity, bool):
            raise TypeError("Buffer() capacity must be an integer")
        if capacity < 1:
            raise ValueError("Buffer() capacity must be a positive integer")
        self._values = [None] * capacity

    @property
    def capacity(self):
        return len(self._values)

    @property
    def values(self):
        return self._values

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __getitem__(self, index):
        return self._values[index]

    def _bind(self, descriptor, zero, /):
        super()._bind(descriptor, zero)
        self._values[:] = [zero] * len(self._values)

    def _clear(self, used, /):
        self._values[:used] = [self._zero] * min(used, len(self._values))

    def __repr__(self):
        return "Buffer(values=%r)" % (self._values,)

    def __rich_repr__(self):
        yield "values", self._values
        yield from super().__rich_repr__()


class Pointer(Target):
    """
    engine-allocated storage.

    `value` is None until the engine writes the first value; the engine owns
    whatever it allocates and drops it on release, on re-parse, and on failure.
    """
    ownership = Ownership.ENGINE

    def __init__(self):
        super().__init__()
        self.value = None

    def _bind(self, descriptor, zero, /):
        super()._bind(descriptor, zero)
        self.value = None

    def _clear(self, used, /):
        self.value = None

    def __repr__(self):
        return "Pointer(value=%r)" % (self.value,)

    def __rich_repr__(self):
        yield "value", self.value
        yield from super().__rich_repr__()


def convert(type, token, /):
    """
    convert a raw token into a value of the given ValueType.

    raises
    - ValueError when no characters of the token could be consumed.
    """
    if not isinstance(type, ValueType):
        raise TypeError("convert() first argument must be a value type")

    match type:
        case ValueType.BOOL:
            return True
        case ValueType.STRING:
            return token
        case ValueType.INT:
            if not (match := _INTEGER.match(token)):
                raise ValueError("cannot parse %r as %s" % (token, type.value))
            return int(match[1])
        case ValueType.UINT:
            if not (match := _UNSIGNED.match(token)):
                raise ValueError("cannot parse %r as %s" % (token, type.value))
            return int(match[1])
        case ValueType.FLOAT | ValueType.DOUBLE:
            if not (match := _DECIMAL.match(token)):
                raise ValueError("cannot parse %r as %s" % (token, type.value))
            value = float(match[1])
            if type is ValueType.DOUBLE:
                return value
            try:
                return struct.unpack("f", struct.pack("f", value))[0]
            except OverflowError:
                return math.copysign(math.inf, value)


def _truncate(value, length):
    """longest prefix of `value` that fits in `length` UTF-8 bytes."""
    size = 0
    for index, character in enumerate(value):
        size += len(character.encode("utf-8", "surrogatepass"))
        if size > length:
            return value[:index]
    return value


def _mirror(descriptor):
    if descriptor.count is not None:
        descriptor.count.value = descriptor.consumed


def write_value(descriptor, token=None, /):
    """
    convert `token` and store it into the descriptor's target.

    behavior
    - booleans ignore the token, set their cell to True and count once.
    - TooManyValuesError when the descriptor already holds `capacity` values.
    - InvalidValueError (with token, option name and type) when conversion fails;
      the target is left untouched in that case.
    - engine-owned arrays are allocated on the first write and grow on demand.
    - the bound count output (if any) mirrors the consumed count after every write,
      so it is accurate even when a later value of the same run fails.
    """
    target = descriptor.target

    if descriptor.type is ValueType.BOOL:
        target.value = True
        descriptor._consumed = 1
        _mirror(descriptor)
        return

    if descriptor.capacity is not None and descriptor.consumed >= descriptor.capacity:
        raise TooManyValuesError(
            "option %r accepts at most %d value%s" % (
                descriptor.name, descriptor.capacity, "" if descriptor.capacity == 1 else "s"
            ),
            title="too many values",
            code=FaultCode.TOO_MANY_VALUES,
            input=descriptor.name,
            token=token,
            expected=descriptor.capacity,
            actual=descriptor.consumed + 1,
            hint="remove the extra values",
            docs=getdoc(FaultCode.TOO_MANY_VALUES),
        )

    try:
        value = convert(descriptor.type, token)
    except ValueError:
        raise InvalidValueError(
            "cannot parse %r as %s for option %r" % (token, descriptor.type.value, descriptor.name),
            title="invalid value",
            code=FaultCode.INVALID_VALUE,
            input=descriptor.name,
            token=token,
            type=descriptor.type,
            hint="provide a valid %s value" % descriptor.type.value,
            docs=getdoc(FaultCode.INVALID_VALUE),
        ) from None

    if descriptor.type is ValueType.STRING and descriptor.length:
        value = _truncate(value, descriptor.length)

    match target:
        case Pointer() if descriptor.array:
            if target.value is None:
                target.value = []
            target.value.append(value)
        case Buffer():
            target.values[descriptor.consumed] = value
        case Pointer() | Scalar():
            target.value = value
        case _:
            raise RuntimeError("unexpected target")

    descriptor._consumed += 1
    _mirror(descriptor)


def release(descriptor, /):
    """
    reset a descriptor's target and runtime parse state.

    safe on never-written, partially-written and fully-written descriptors, and
    safe to call repeatedly:
    - Pointer: drops the engine allocation (value back to None).
    - Buffer: zeroes the region written so far.
    - Scalar: restores the default.
    - consumed count, last match position and the count output are reset.
    """
    descriptor.target._clear(descriptor.consumed)
    descriptor._consumed = 0
    descriptor._matched_at = None
    _mirror(descriptor)


__all__ = (
    "ValueType",
    "Ownership",
    "Target",
    "Scalar",
    "Buffer",
    "Pointer",
    "convert",
    "write_value",
    "release",
)
