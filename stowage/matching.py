r"""
Stowage argument-matching engine.

The engine walks an argument vector once, from a start index, and classifies
every token:
- a token equal to a declared (prefixed) name starts a run for that option,
- any other prefixed token is unknown,
- anything else feeds the next positional option that still has room, or is extra.

A run consumes values right after the option name (or from the token itself for
positional options) until the option has what it wants, the vector ends, or a
token equal to a declared name shows up. Positional options may be resumed after
an interleaved named option, so "a b --flag c" fills a three-value positional.

All per-parse state lives in a Scanner threaded through every call; descriptors
only carry their own counters (consumed, matched_at), which the parser resets
before each parse.

Faults
- raised (never triggered) here: MissingArgumentError, TooManyValuesError,
  InvalidValueError, DuplicateOptionError, MissingRequiredOptionError,
  UnknownOptionError. The parser releases engine storage and triggers them.
- DuplicateOptionWarning is triggered through the parser as soon as a repeated,
  non-unique option is seen; the earlier values are dropped.
"""
import copy
from enum import IntEnum

from .faults import *
from .options import *
from .storage import *
from .suggestions import closest
from .utils import *


class Status(IntEnum):
    SUCCESS = 0
    HELP = 1
    FAILURE = -1


class Scanner:
    """
    cursor over one parse: argument vector, start, current index and the tokens
    left for the caller (extra positionals, unknown prefixed tokens with their index).
    """

    def __init__(self, argv, start=1):
        self.argv = tuple(argv)
        self.start = start
        self.index = start
        self.extra = []
        self.unknown = []

    def position(self, index):
        """ordinal label of argv[index], counting from the start index."""
        return ordinal(index - self.start + 1)

    def context(self, *marks):
        """options shared by every fault raised at this point of the scan."""
        return {"argv": self.argv, "start": self.start, "marks": marks}

    def __repr__(self):
        return "Scanner(index=%d, extra=%r, unknown=%r)" % (self.index, self.extra, self.unknown)


def _lookup(parser, token):
    # only prefixed tokens may name an option
    if not token or token[0] not in parser.prefix:
        return None
    return parser.lookup(token)


def _next_positional(parser):
    for descriptor in parser:
        if not descriptor.positional:
            continue
        if descriptor.capacity is None or descriptor.consumed < descriptor.capacity:
            return descriptor
    return None


def _wanted(descriptor, available):
    match descriptor.nargs:
        case "?":
            wanted = 1 - descriptor.consumed
        case "+":
            wanted = max(available, 1)
        case "*":
            wanted = available
        case nargs:
            wanted = nargs - descriptor.consumed
    if descriptor.capacity is not None:
        wanted = min(wanted, descriptor.capacity - descriptor.consumed)
    return max(wanted, 0)


def _minimum(descriptor):
    match descriptor.nargs:
        case "+":
            return 1
        case "*" | "?":
            return 0
        case nargs:
            return nargs


def _duplicate(parser, scanner, descriptor, input):
    index = scanner.index
    previous = descriptor.matched_at
    marks = ((previous, "^", "mark-previous"), (index, "~", "mark-error"))

    if descriptor.unique:
        raise DuplicateOptionError(
            "option %r at %s position was already provided at %s position" % (
                input, scanner.position(index), scanner.position(previous)
            ),
            title="duplicate option",
            code=FaultCode.DUPLICATE_OPTION,
            input=input,
            index=index,
            previous=previous,
            hint="keep a single %r; this option can be specified only once" % descriptor.name,
            docs=getdoc(FaultCode.DUPLICATE_OPTION),
            **scanner.context(*marks),
        )

    parser.trigger(DuplicateOptionWarning(
        "option %r at %s position overrides the one at %s position" % (
            input, scanner.position(index), scanner.position(previous)
        ),
        title="duplicate option",
        code=FaultCode.DUPLICATE_OPTION_OVERRIDE,
        input=input,
        index=index,
        previous=previous,
        hint="the last occurrence wins; remove the earlier one to silence this warning",
        docs=getdoc(FaultCode.DUPLICATE_OPTION_OVERRIDE),
        **scanner.context(*marks),
    ))
    release(descriptor)


def _missing(scanner, descriptor, input, expected, actual, values):
    index = scanner.index
    if descriptor.positional:
        message = "positional argument %r at %s position expects %d value%s but got %d" % (
            descriptor.metavar or descriptor.name, scanner.position(index),
            expected, "" if expected == 1 else "s", actual,
        )
    else:
        message = "option %r at %s position expects %d value%s but got %d" % (
            input, scanner.position(index), expected, "" if expected == 1 else "s", actual,
        )
    marks = [(index, "~", "mark-error")]
    marks.extend((position, "^", "mark-previous") for position in values)
    return MissingArgumentError(
        message,
        title="missing argument",
        code=FaultCode.MISSING_ARGUMENT,
        input=input,
        index=index,
        expected=expected,
        actual=actual,
        hint="provide %d more value%s" % (expected - actual, "" if expected - actual == 1 else "s"),
        docs=getdoc(FaultCode.MISSING_ARGUMENT),
        **scanner.context(*marks),
    )


def _consume(parser, scanner, descriptor, input):
    """
    run one option (or one resumption of a positional option) at scanner.index.

    returns the number of tokens eaten: the values consumed, plus one for the name
    of a named option.
    """
    index = scanner.index
    named = not descriptor.positional
    begin = index + 1 if named else index

    if named and descriptor.parsed:
        _duplicate(parser, scanner, descriptor, input)

    wanted = _wanted(descriptor, len(scanner.argv) - begin)
    allowed = descriptor.type is ValueType.BOOL or descriptor.nargs in (ZERO_OR_MORE, ZERO_OR_ONE)

    if begin + wanted > len(scanner.argv) and not allowed:
        raise _missing(
            scanner, descriptor, input,
            descriptor.consumed + wanted, descriptor.consumed + len(scanner.argv) - begin,
            range(begin, len(scanner.argv)),
        )

    count = 0
    try:
        if descriptor.type is ValueType.BOOL:
            write_value(descriptor)
        for position in range(begin, min(begin + wanted, len(scanner.argv))):
            if _lookup(parser, token := scanner.argv[position]) is not None:
                break
            write_value(descriptor, token)
            count += 1
    except (InvalidValueError, TooManyValuesError) as fault:
        position = begin + count
        marks = [(position, "~", "mark-error")]
        if named:
            marks.append((index, "^", "mark-previous"))
        raise copy.replace(
            fault,
            input=input,
            index=position,
            **scanner.context(*marks),
        ) from None

    if named and descriptor.consumed < _minimum(descriptor):
        raise _missing(scanner, descriptor, input, _minimum(descriptor), descriptor.consumed, range(begin, begin + count))

    descriptor._matched_at = index
    return count + 1 if named else count


def _finish(parser, scanner):
    if parser.help is not None and parser.help.parsed:
        return Status.HELP

    for descriptor in parser:
        name = (descriptor.metavar or descriptor.name) if descriptor.positional else descriptor.name
        kind = "positional argument" if descriptor.positional else "option"

        if descriptor.required and not descriptor.parsed:
            raise MissingRequiredOptionError(
                "missing required %s %r" % (kind, name),
                title="missing required %s" % kind,
                code=FaultCode.MISSING_REQUIRED_OPTION,
                input=descriptor.name,
                hint="provide %r; run '%s --help' to see the expected usage" % (name, parser.prog),
                docs=getdoc(FaultCode.MISSING_REQUIRED_OPTION),
                **scanner.context(),
            )

        if (
            descriptor.positional and
            descriptor.parsed and
            isinstance(descriptor.nargs, int) and
            descriptor.consumed < descriptor.nargs
        ):
            raise MissingArgumentError(
                "positional argument %r from %s position expects %d value%s but got %d" % (
                    name, scanner.position(descriptor.matched_at), descriptor.nargs,
                    "" if descriptor.nargs == 1 else "s", descriptor.consumed,
                ),
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                input=descriptor.name,
                index=descriptor.matched_at,
                expected=descriptor.nargs,
                actual=descriptor.consumed,
                hint="provide %d more value%s" % (
                    descriptor.nargs - descriptor.consumed,
                    "" if descriptor.nargs - descriptor.consumed == 1 else "s",
                ),
                docs=getdoc(FaultCode.MISSING_ARGUMENT),
                **scanner.context((descriptor.matched_at, "~", "mark-error")),
            )

    if scanner.unknown:
        names = [name for descriptor in parser for name in descriptor.names]
        suggestions = {token: closest(token, names, parser.prefix) for index, token in scanner.unknown}

        message = "unknown option%s %s" % (
            "s" * (len(scanner.unknown) > 1),
            ", ".join("%r at %s position" % (token, scanner.position(index)) for index, token in scanner.unknown),
        )
        hints = ["did you mean %r instead of %r?" % (suggestion, token)
                 for token, suggestion in suggestions.items() if suggestion]
        if parser.help is not None:
            hints.append("run '%s --help' to see all options" % parser.prog)

        raise UnknownOptionError(
            message,
            title="unknown option",
            code=FaultCode.UNKNOWN_OPTION,
            input=scanner.unknown[0][1],
            index=scanner.unknown[0][0],
            unknowns=tuple(token for index, token in scanner.unknown),
            suggestions=suggestions,
            hint=" ".join(hints) or Unset,
            docs=getdoc(FaultCode.UNKNOWN_OPTION),
            **scanner.context(*((index, "~", "mark-error") for index, token in scanner.unknown)),
        )

    return Status.SUCCESS


def match(parser, scanner):
    """
    classify every token of scanner.argv from scanner.index onwards.

    returns
    - Status.HELP when the help option was given (required and unknown checks are skipped).
    - Status.SUCCESS otherwise.

    raises
    - any ParseException describing the first fatal problem; descriptors and the
      scanner keep whatever was written up to that point.
    """
    while scanner.index < len(scanner.argv):
        token = scanner.argv[scanner.index]

        if (descriptor := _lookup(parser, token)) is not None:
            scanner.index += _consume(parser, scanner, descriptor, token)
        elif token and token[0] in parser.prefix:
            scanner.unknown.append((scanner.index, token))
            scanner.index += 1
        elif (descriptor := _next_positional(parser)) is not None:
            scanner.index += _consume(parser, scanner, descriptor, descriptor.name)
        else:
            scanner.extra.append(token)
            scanner.index += 1

    return _finish(parser, scanner)


__all__ = (
    "Status",
    "Scanner",
    "match",
)
