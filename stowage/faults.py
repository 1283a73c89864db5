"""
Stowage faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
  Codes are grouped by domain (parse-time errors, declaration errors, warnings)
  to keep logs and searches predictable.
- SpecificationError family: raised while declaring options (registration and
  format-spec compilation). These are programming errors of the host, so they
  are always raised, never rendered.
- ParseException / ParseWarning: base types for problems found while scanning an
  argument vector. They carry a message plus read-only options and know how to
  render themselves (including the argv highlight) in a friendly, lowercased tone.
- trigger(): central entry point to surface a fault (raise/warn, or print in shell mode).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages: parse faults name the ordinal position of the token.
- Short titles, one-sentence bodies, a single clear hint.
- The raw arguments are echoed with markers under the offending token(s).

Integration
- The parser merges its runtime options (parser, shell, fancy, colorful) into a
  fault via copy.replace(...) and triggers it.
- Outside shell mode, exceptions are raised and warnings go through warnings.warn;
  in shell mode both are printed on stderr through rich.
"""
import copy
import inspect
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .highlight import highlight
from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - parse-time errors (111xx)
      • MISSING_ARGUMENT, TOO_MANY_VALUES, INVALID_VALUE, DUPLICATE_OPTION,
        MISSING_REQUIRED_OPTION, UNKNOWN_OPTION
    - declaration errors (113xx)
      • DUPLICATE_NAME, INVALID_ARITY, EMPTY_NAME, NULL_TARGET,
        INVALID_ALLOCATION, FORMAT_SYNTAX, CONFIGURATION
    - warnings (121xx)
      • DUPLICATE_OPTION_OVERRIDE

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- parse-time errors (111xx) ---
    MISSING_ARGUMENT            = 11111
    TOO_MANY_VALUES             = 11112
    INVALID_VALUE               = 11113
    DUPLICATE_OPTION            = 11114
    MISSING_REQUIRED_OPTION     = 11115
    UNKNOWN_OPTION              = 11116

    # --- declaration errors (113xx) ---
    DUPLICATE_NAME              = 11301
    INVALID_ARITY               = 11302
    EMPTY_NAME                  = 11303
    NULL_TARGET                 = 11304
    INVALID_ALLOCATION          = 11305
    FORMAT_SYNTAX               = 11306
    CONFIGURATION               = 11307

    # --- warnings (121xx) ---
    DUPLICATE_OPTION_OVERRIDE   = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class SpecificationError(Exception):
    """
    base for errors raised while declaring options.

    carries the message and a read-only options mapping (for example the
    offending name, or the column of a format-spec syntax error).
    """
    code = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateNameError(SpecificationError, ValueError):
    code = FaultCode.DUPLICATE_NAME


class InvalidArityError(SpecificationError, ValueError):
    code = FaultCode.INVALID_ARITY


class EmptyNameError(SpecificationError, ValueError):
    code = FaultCode.EMPTY_NAME


class NullTargetError(SpecificationError, TypeError):
    code = FaultCode.NULL_TARGET


class InvalidAllocationError(SpecificationError, ValueError):
    code = FaultCode.INVALID_ALLOCATION


class FormatSyntaxError(SpecificationError, ValueError):
    code = FaultCode.FORMAT_SYNTAX

    @property
    def column(self):
        """0-based column of the offending character in the format string."""
        return self.options.get("column")


class ConfigurationError(SpecificationError, ValueError):
    code = FaultCode.CONFIGURATION


def _styler(options, styles):
    def styler(style):
        return styles[style] if options.get("colorful", True) else ""
    return styler


def _texter(options):
    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not options.get("colorful", True):
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)
    return text


def _progname(options):
    main = __import__("__main__")
    try:
        return getattr(main, "__prog__", options["parser"].prog)
    except KeyError:
        return getattr(main, "__prog__", "stowage")


class ParseException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text

            # argv markers
            "mark-error": "bold #FF4DA6",
            "mark-previous": "#9CE19C",
            "mark-muted": "#6B6F7A",
            "mark-warning": "#FFB400",
        } | getattr(main, "__styles__", {}))

        styler = _styler(self.options, styles)
        text = _texter(self.options)
        fancy = self.options.get("fancy", False)

        header = Text.assemble(
            "[ ",
            text(_progname(self.options), styler("prog-name")),
            " — ",
            text(self.options.get("code", FaultCode.UNKNOWN_OPTION).normalize(), styler("code")),
            " | ",
            text(self.options.get("title", "error").title(), styler("error-title")),
            " ]"
        )
        body = [text(self.message, styler("error-message"))]

        if argv := self.options.get("argv"):
            body.append(highlight(
                argv,
                self.options.get("start", 0),
                *((index, marker, styler(style)) for index, marker, style in self.options.get("marks", ())),
                colorful=self.options.get("colorful", True),
            ))

        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            width = console.width - 4
            try:
                width = int(width * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(*body), title=header, title_align="left", width=width)

        return Group(header, *body)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingArgumentError(ParseException): ...
class TooManyValuesError(ParseException): ...
class InvalidValueError(ParseException): ...
class DuplicateOptionError(ParseException): ...
class MissingRequiredOptionError(ParseException): ...
class UnknownOptionError(ParseException): ...


class ParseWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text

            # argv markers
            "mark-error": "#FFB400",
            "mark-previous": "#6B6F7A",
            "mark-muted": "#6B6F7A",
            "mark-warning": "#FFB400",
        } | getattr(main, "__styles__", {}))

        styler = _styler(self.options, styles)
        text = _texter(self.options)

        header = Text.assemble(
            "[ ",
            text(_progname(self.options), styler("prog-name")),
            " — ",
            text(self.options.get("code", FaultCode.DUPLICATE_OPTION_OVERRIDE).normalize(), styler("code")),
            " | ",
            text(self.options.get("title", "warning").title(), styler("warning-title")),
            " ]"
        )
        body = [text(self.message, styler("warning-message"))]

        if argv := self.options.get("argv"):
            body.append(highlight(
                argv,
                self.options.get("start", 0),
                *((index, marker, styler(style)) for index, marker, style in self.options.get("marks", ())),
                colorful=self.options.get("colorful", True),
            ))

        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if self.options.get("fancy", False):
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateOptionWarning(ParseWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - outside shell mode exceptions are raised and warnings are emitted; in shell
      mode both are rendered via the rich console.

    typical options
    - parser, shell, fancy, colorful, title, code, hint, argv, start, marks, and any
      other context the reporter may want to show (input, index, expected, actual...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None (renderers treat docs as optional).
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "SpecificationError",
    "DuplicateNameError",
    "InvalidArityError",
    "EmptyNameError",
    "NullTargetError",
    "InvalidAllocationError",
    "FormatSyntaxError",
    "ConfigurationError",
    "ParseException",
    "MissingArgumentError",
    "TooManyValuesError",
    "InvalidValueError",
    "DuplicateOptionError",
    "MissingRequiredOptionError",
    "UnknownOptionError",
    "ParseWarning",
    "DuplicateOptionWarning",
    "trigger",
    "getdoc",
)
