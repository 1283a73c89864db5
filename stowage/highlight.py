"""
Argument-vector highlighting for diagnostics.

Renders the scanned part of an argument vector on one line and a marker row
underneath it, so a fault can point at the offending token (and, for repeated
options, at the earlier occurrence too):

    --alpha 1 --beta 2 --alpha 3
    ^^^^^^^            ~~~~~~~

Markers are plain characters; colors are applied through rich styles only when
`colorful` is set, so the same Text renders cleanly on dumb terminals and in logs.
"""
from rich.text import Text


def highlight(argv, start=0, /, *marks, colorful=True):
    """
    Build a two-line rich Text echoing argv[start:] with markers.

    parameters
    - argv: Sequence[str], the raw argument vector.
    - start: int, first index to echo (tokens before it, e.g. the program name, are skipped).
    - marks: (index, marker, style) tuples; `marker` is repeated under the whole token,
      `style` is any rich style (ignored unless colorful).
    - colorful: bool (keyword-only), apply styles to the token and its marker.

    notes
    - marks pointing outside [start, len(argv)) are ignored.
    - empty tokens still get a one-character marker so the position stays visible.
    """
    if not isinstance(start, int) or start < 0:
        raise TypeError("highlight() start must be a non-negative integer")

    lookup = {}
    for index, marker, style in marks:
        lookup.setdefault(index, (marker, style if colorful else ""))

    line = Text()
    row = Text()
    for index in range(start, len(argv)):
        token = argv[index]
        if index > start:
            line.append(" ")
            row.append(" ")
        try:
            marker, style = lookup[index]
        except KeyError:
            line.append(token)
            row.append(" " * len(token))
            continue
        line.append(token.ljust(1), style)
        row.append(marker * max(len(token), 1), style)

    row.rstrip()
    return Text("\n").join((line, row))


__all__ = (
    "highlight",
)
