r"""
Stowage format-spec compiler.

A format spec is a compact description of an option's type, storage and arity,
used by Parser.add_option():

    spec          := alloc_marker? array_open? type_char length_marker? array_close? arity_marker?
    alloc_marker  := '.'              caller-owned storage; absence means engine-allocated
    array_open    := '['
    array_close   := ']'
    type_char     := 's' | 'i' | 'u' | 'f' | 'd' | 'b'
    length_marker := '#' INTEGER?     strings only
    arity_marker  := '*' | '+' | '?' | '#' INTEGER?

Spaces and tabs are ignored (they still count for error columns). A '#' followed
by digits carries its integer inline; a bare '#' takes its integer from the
trailing arguments handed to bind().

Trailing arguments are consumed in this order:
- the target (Scalar, Buffer, or Pointer),
- the string length, for a bare '#' after 's',
- the count output, for the array form,
- the exact count, for a bare '#' arity marker.

Examples
- "i"       one int in a Scalar.
- "s"       one string, engine-allocated (Pointer).
- ".s#"     one string in a Scalar, truncated to a length given as argument.
- "[d]+"    one or more doubles in a Pointer, with a count output.
- ".[i]#3"  exactly three ints in a Buffer, with a count output.
- "b"       a flag (bool in a Scalar, no arguments).
"""
from typing import NamedTuple

from .faults import *
from .options import *
from .options import VARIABLE
from .storage import *
from .utils import *

_TYPES = {
    "s": ValueType.STRING,
    "i": ValueType.INT,
    "u": ValueType.UINT,
    "f": ValueType.FLOAT,
    "d": ValueType.DOUBLE,
    "b": ValueType.BOOL,
}


class Shape(NamedTuple):
    """
    compiled format spec.

    length and nargs are None when a bare '#' defers them to the trailing arguments.
    """
    format: str
    type: ValueType
    array: bool
    alloc: bool
    length: int | None
    nargs: int | str | None


class Lexer:
    """
    single-character lookahead over a format spec, with one token of pushback.

    `next()` returns the next significant character ("" at the end) and records
    its 0-based column; `back()` pushes the current token back once.
    """

    def __init__(self, format):
        self._format = format
        self._offset = 0
        self._current = ("", 0)
        self._previous = ("", 0)

    @property
    def column(self):
        return self._current[1]

    def next(self):
        offset = self._offset
        while offset < len(self._format) and self._format[offset] in " \t":
            offset += 1
        token = self._format[offset:offset + 1]
        self._offset = offset + len(token)
        self._previous, self._current = self._current, (token, offset)
        return token

    def back(self):
        token, column = self._current
        self._offset = column
        self._current = self._previous

    def integer(self):
        """digits right after the current token as an int, None when there are none."""
        start = offset = self._offset
        while offset < len(self._format) and self._format[offset] in "0123456789":
            offset += 1
        self._offset = offset
        return int(self._format[start:offset]) if offset > start else None


def _unexpected(format, lexer, expected, /):
    token = format[lexer.column:lexer.column + 1]
    found = "end of format" if not token else f"{token!r}"
    return FormatSyntaxError(
        f"format {format!r}: unexpected {found} at column {lexer.column}, expected {expected}",
        format=format,
        column=lexer.column,
    )


def compile(format, /):
    """
    Compile a format spec into a Shape.

    Raises
    - TypeError: format is not a string.
    - FormatSyntaxError: unknown character, missing ']', missing arity marker after ']',
      trailing characters, or a length marker on a non-string type (carries `column`).
    - ConfigurationError: variable or non-unit exact arity without the array form,
      caller-owned storage with a variable arity, a bool with array syntax or arity.
    """
    if not isinstance(format, str):
        raise TypeError("compile() argument must be a string")

    lexer = Lexer(format)

    alloc = True
    if (token := lexer.next()) == ".":
        alloc = False
        token = lexer.next()

    if array := token == "[":
        token = lexer.next()

    try:
        type = _TYPES[token]
    except KeyError:
        raise _unexpected(format, lexer, "one of 's', 'i', 'u', 'f', 'd', 'b'") from None

    if type is ValueType.BOOL and array:
        raise ConfigurationError(f"format {format!r}: a bool cannot use the array form", format=format)

    length = 0
    if lexer.next() == "#":
        if type is not ValueType.STRING:
            if array:
                raise FormatSyntaxError(
                    f"format {format!r}: length marker at column {lexer.column} is only allowed for strings",
                    format=format,
                    column=lexer.column,
                )
            lexer.back()
        else:
            length = lexer.integer()
    else:
        lexer.back()

    if array:
        if lexer.next() != "]":
            raise _unexpected(format, lexer, "']'")
        match lexer.next():
            case "*" | "+" | "?" as marker:
                nargs = marker
            case "#":
                nargs = lexer.integer()
            case _:
                raise _unexpected(format, lexer, "one of '*', '+', '?', '#' after ']'")
        if not alloc and nargs in VARIABLE:
            raise ConfigurationError(
                f"format {format!r}: caller-owned storage needs an exact arity ('#')",
                format=format,
            )
    else:
        nargs = 0 if type is ValueType.BOOL else 1
        match lexer.next():
            case "*" | "+" | "?":
                raise ConfigurationError(
                    f"format {format!r}: variable arity requires the array form '[...]'",
                    format=format,
                )
            case "#" if type is ValueType.BOOL:
                raise ConfigurationError(f"format {format!r}: a bool cannot take an arity", format=format)
            case "#":
                nargs = lexer.integer()
                if nargs is not None and nargs != 1:
                    raise ConfigurationError(
                        f"format {format!r}: an arity other than 1 requires the array form '[...]'",
                        format=format,
                    )
            case _:
                lexer.back()
        # single values are only ever allocated for strings
        alloc = alloc and type is ValueType.STRING

    if lexer.next():
        raise _unexpected(format, lexer, "end of format")

    return Shape(format, type, array, alloc, length, nargs)


def bind(shape, args, /):
    """
    Pair a Shape with its trailing arguments.

    Returns the keyword arguments for Parser.register(): type, nargs, target,
    count and length.

    Raises
    - NullTargetError: no target argument (or None).
    - TypeError: another argument is missing, or arguments are left over.
    - InvalidAllocationError: a Pointer target for a single non-string value.
    - ConfigurationError: the target kind disagrees with the allocation marker,
      or a deferred single-value arity is not 1.
    """
    args = list(args)

    def take(what):
        try:
            return args.pop(0)
        except IndexError:
            raise TypeError(f"format {shape.format!r} is missing its {what} argument") from None

    if not args or (target := args.pop(0)) is None:
        raise NullTargetError(f"format {shape.format!r} is missing its target argument", format=shape.format)

    length = take("string length") if shape.length is None else shape.length
    count = take("count") if shape.array else Unset
    nargs = take("arity") if shape.nargs is None else shape.nargs

    if args:
        raise TypeError(f"format {shape.format!r} takes {len(args)} argument(s) too many")

    if not shape.array and shape.nargs is None and nargs != 1:
        raise ConfigurationError(
            f"format {shape.format!r}: an arity other than 1 requires the array form '[...]'",
            format=shape.format,
        )

    if shape.alloc and not isinstance(target, Pointer):
        raise ConfigurationError(
            f"format {shape.format!r} allocates its storage and needs a Pointer target",
            format=shape.format,
        )
    if not shape.array and shape.type is not ValueType.STRING and isinstance(target, Pointer):
        raise InvalidAllocationError(
            f"format {shape.format!r} holds a single {shape.type.value} and cannot use engine storage",
            format=shape.format,
        )
    if not shape.alloc and isinstance(target, Pointer):
        raise ConfigurationError(
            f"format {shape.format!r} stores into caller-owned storage and needs a Scalar or a Buffer target",
            format=shape.format,
        )

    return {
        "type": shape.type,
        "nargs": nargs,
        "target": target,
        "count": count,
        "length": length,
    }


__all__ = (
    "Shape",
    "Lexer",
    "compile",
    "bind",
)
