r"""
Stowage parser: option registry and parse entry point.

Overview
- Parser keeps the ordered option descriptors, the name index and the runtime
  configuration (prefix characters, auto help, autoclean, shell/fancy/colorful).
- register(...) declares an option from explicit fields; add_option(...) does the
  same from a compact format spec (see stowage.formats).
- parse(argv, start) resets every descriptor, runs the matching engine and returns
  a Result(status, extra, unknown).

Failure policy
- declaration problems raise SpecificationError subclasses right away and leave
  the registry unchanged.
- parse problems release every engine-owned target, then surface through trigger():
  raised outside shell mode, rendered on stderr (and Status.FAILURE returned) in
  shell mode. Caller-owned targets keep what was written before the failure.

Quick example:
    >>> from stowage import Parser, Scalar, Pointer
    >>> parser = Parser("demo")
    >>> verbose, files = Scalar(), Pointer()
    >>> _ = parser.add_option("-v --verbose", "b", verbose, descr="talk more")
    >>> _ = parser.add_option("--files", "[s]+", files, None)
    >>> parser.parse(["demo", "-v", "--files", "a", "b", "rest"])
    Result(status=<Status.SUCCESS: 0>, extra=('rest',), unknown=())
    >>> verbose.value, files.value
    (True, ['a', 'b'])
"""
import os
import sys
from collections.abc import Iterable
from typing import NamedTuple

from . import formats
from .faults import *
from .matching import *
from .options import *
from .storage import *
from .utils import *


class Result(NamedTuple):
    status: Status
    extra: tuple
    unknown: tuple


def _sanitize_configuration(metadata, /):
    for name in ("prog", "descr", "epilog"):
        if not isinstance(object := metadata[name], str | Unset):
            raise TypeError(f"parser {name!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"parser {name!r} cannot be empty")
        metadata[name] = coalesce(object)

    if not isinstance(prefix := metadata["prefix"], str):
        raise TypeError("parser 'prefix' must be a string")
    elif not prefix or any(character.isspace() for character in prefix):
        raise ValueError("parser 'prefix' must be a non-empty string without whitespace")

    for name in ("auto_help", "autoclean", "shell", "fancy", "colorful"):
        metadata[name] = bool(metadata[name])


class Parser:
    """
    Registry of option descriptors and entry point of the parse.

    Parameters
    - prog: Unset | str
      Program name used in diagnostics. Defaults to the basename of sys.argv[0].
    - descr, epilog: Unset | str
      Help texts kept for an external renderer.
    - prefix: str (keyword-only)
      Characters that mark a token as option-like ("-" by default, "-+" for both).
    - auto_help: bool (keyword-only)
      Declare "--help" (and "-h" when free) at the first parse.
    - autoclean: bool (keyword-only)
      Release every target on destroy().
    - shell, fancy, colorful: bool (keyword-only)
      Rendering of parse faults: print instead of raise, use panels, use colors.

    Protocols
    - name in parser, parser[name], iter(parser), len(parser).
    - context manager: destroy() on exit.
    """

    prog = mirror("prog")
    descr = mirror("descr")
    epilog = mirror("epilog")
    prefix = mirror("prefix")
    auto_help = mirror("auto_help")
    autoclean = mirror("autoclean")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")

    def __init__(
            self,
            prog=Unset,
            /,
            descr=Unset,
            epilog=Unset,
            *,
            prefix="-",
            auto_help=True,
            autoclean=False,
            shell=False,
            fancy=False,
            colorful=True,
    ):
        metadata = {
            "prog": coalesce(prog, os.path.basename(sys.argv[0]) or "stowage"),
            "descr": descr,
            "epilog": epilog,
            "prefix": prefix,
            "auto_help": auto_help,
            "autoclean": autoclean,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _sanitize_configuration(metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._descriptors = []
        self._index = {}
        self._help = None
        self._scanner = None

    # ── registry ───────────────────────────────────────────────────────────────

    def register(
            self,
            names,
            /,
            type=ValueType.STRING,
            nargs=Unset,
            target=Unset,
            count=Unset,
            length=0,
            *,
            unique=False,
            required=False,
            descr=Unset,
            metavar=Unset,
    ):
        """
        Declare an option and bind its storage.

        Returns
        - Descriptor: the registered option.

        Raises
        - DuplicateNameError: a name is already declared (the registry is unchanged).
        - any error raised by Descriptor validation (arity, target, shape).
        """
        descriptor = Descriptor(
            names,
            type,
            nargs,
            target,
            count,
            length,
            prefix=self._prefix,
            unique=unique,
            required=required,
            descr=descr,
            metavar=metavar,
        )
        for name in descriptor.names:
            if name in self._index:
                raise DuplicateNameError(f"option name {name!r} is already declared", input=name)

        descriptor._attach()
        self._descriptors.append(descriptor)
        self._index.update(dict.fromkeys(descriptor.names, descriptor))
        return descriptor

    def add_option(self, names, format, /, *args, **flags):
        """
        Declare an option from a format spec and its trailing arguments.

        "-n --number", "i", target              -> one int in a Scalar
        "--files", "[s]+", target, count        -> one or more strings in a Pointer
        "--point", ".[d]#", target, count, 3    -> exactly three doubles in a Buffer

        Keyword flags (unique, required, descr, metavar) go to register().
        """
        return self.register(names, **formats.bind(formats.compile(format), args), **flags)

    def alias(self, name, alias, /):
        """add `alias` as another name of the option declared as `name` (KeyError if none)."""
        descriptor = self._index[name]
        if not isinstance(alias, str):
            raise TypeError("alias() second argument must be a string")
        elif not alias:
            raise EmptyNameError("alias() second argument cannot be an empty-string")
        elif any(character.isspace() for character in alias):
            raise ValueError("alias() second argument cannot contain whitespace")
        elif alias in self._index:
            raise DuplicateNameError(f"option name {alias!r} is already declared", input=alias)
        descriptor._names += (alias,)
        self._index[alias] = descriptor
        return descriptor

    def metavar(self, name, metavar, /):
        """set the display label of the option declared as `name` (KeyError if none)."""
        descriptor = self._index[name]
        if not isinstance(metavar, str):
            raise TypeError("metavar() second argument must be a string")
        elif not (metavar := metavar.strip()):
            raise ValueError("metavar() second argument cannot be empty")
        descriptor._metavar = metavar
        return descriptor

    def lookup(self, token, /):
        """descriptor declared under `token`, or None."""
        return self._index.get(token)

    @property
    def descriptors(self):
        return tuple(self._descriptors)

    @property
    def help(self):
        """descriptor of the injected help option (None until the first parse)."""
        return self._help

    def __getitem__(self, name):
        return self._index[name]

    def __contains__(self, name):
        return name in self._index

    def __iter__(self):
        return iter(tuple(self._descriptors))

    def __len__(self):
        return len(self._descriptors)

    def __repr__(self):
        return "Parser(prog=%r, descriptors=%d)" % (self._prog, len(self._descriptors))

    def __rich_repr__(self):
        yield "prog", self._prog
        yield "prefix", self._prefix
        yield "descriptors", tuple(self._descriptors)

    # ── parsing ────────────────────────────────────────────────────────────────

    @property
    def extra(self):
        """positional tokens left over by the last parse."""
        return tuple(self._scanner.extra) if self._scanner else ()

    @property
    def unknown(self):
        """prefixed tokens of the last parse that matched no declared name."""
        return tuple(token for index, token in self._scanner.unknown) if self._scanner else ()

    def trigger(self, fault, /, **options):
        """surface a fault with this parser's rendering options merged in."""
        trigger(fault, **options, parser=self, shell=self._shell, fancy=self._fancy, colorful=self._colorful)

    def _inject_help(self):
        if not self._auto_help or self._help is not None:
            return
        marker = self._prefix[0]
        if (long := marker * 2 + "help") in self._index:
            return
        names = [long]
        if (short := marker + "h") not in self._index:
            names.append(short)
        self._help = self.register(names, ValueType.BOOL, target=Scalar(), descr="show this help message and exit")

    def parse(self, argv=Unset, /, start=1):
        """
        Match argv[start:] against the declared options.

        Parameters
        - argv: Unset | Iterable[str]
          Already tokenized arguments; Unset reads sys.argv.
        - start: int
          Index of the first token to scan (1 skips the program name).

        Returns
        - Result(status, extra, unknown), status being Status.SUCCESS, Status.HELP
          (help requested, required and unknown checks skipped) or Status.FAILURE
          (shell mode only; the fault was printed).

        Raises
        - ParseException subclasses outside shell mode.
        - TypeError/ValueError for a malformed argv or start.
        """
        argv = coalesce(argv, sys.argv)
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("parse() argument must be an iterable of strings")
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argument must be an iterable of strings")
        if not isinstance(start, int) or isinstance(start, bool):
            raise TypeError("parse() 'start' must be an integer")
        elif start < 0:
            raise ValueError("parse() 'start' must be a non-negative integer")

        self._inject_help()

        for descriptor in self._descriptors:
            release(descriptor)

        self._scanner = scanner = Scanner(argv, start)
        try:
            status = match(self, scanner)
        except ParseException as fault:
            self._release_engine()
            self.trigger(fault)
            status = Status.FAILURE
        except BaseException:
            # warnings escalated to errors by the host, interrupts
            self._release_engine()
            raise

        return Result(status, self.extra, self.unknown)

    def _release_engine(self):
        for descriptor in self._descriptors:
            if descriptor.ownership is Ownership.ENGINE:
                release(descriptor)

    # ── lifetime ───────────────────────────────────────────────────────────────

    def release(self):
        """release every target (engine storage dropped, caller storage reset)."""
        for descriptor in self._descriptors:
            release(descriptor)

    def destroy(self):
        """
        forget every option.

        targets are released first when autoclean is on; in any case they are
        unbound, so they can be registered again with another parser.
        """
        for descriptor in self._descriptors:
            if self._autoclean:
                release(descriptor)
            descriptor._detach()
        self._descriptors.clear()
        self._index.clear()
        self._help = None
        self._scanner = None

    def __enter__(self):
        return self

    def __exit__(self, *exception):
        self.destroy()


__all__ = (
    "Result",
    "Parser",
)
