"""
Stowage "did you mean" suggestions.

- distance(source, target): unrestricted Damerau-Levenshtein distance (insertions,
  deletions, substitutions and transpositions of adjacent characters, where a
  transposed pair may be edited again).
- closest(token, names, prefix): the declared name nearest to a mistyped token,
  when it is at most one edit away once prefix characters are stripped.

    >>> distance("-alph", "-alpha")
    1
    >>> closest("-alph", ["--alpha", "--beta"], "-")
    '--alpha'
    >>> closest("-xyz", ["--alpha", "--beta"], "-") is None
    True
"""

THRESHOLD = 1


def distance(source, target, /):
    """
    unrestricted Damerau-Levenshtein distance between two strings.

    distance(a, b) == distance(b, a), distance(a, a) == 0 and a single adjacent
    transposition counts as one edit ("ab" -> "ba").
    """
    if not isinstance(source, str) or not isinstance(target, str):
        raise TypeError("distance() arguments must be strings")

    infinity = len(source) + len(target)
    seen = {}  # last row where each character of source was found

    # (len(source) + 2) x (len(target) + 2) matrix with a sentinel border
    matrix = [[infinity] * (len(target) + 2) for _ in range(len(source) + 2)]
    for row in range(len(source) + 1):
        matrix[row + 1][0] = infinity
        matrix[row + 1][1] = row
    for column in range(len(target) + 1):
        matrix[0][column + 1] = infinity
        matrix[1][column + 1] = column

    for row in range(1, len(source) + 1):
        last = 0  # last column in this row where source[row - 1] matched
        for column in range(1, len(target) + 1):
            previous = seen.get(target[column - 1], 0)
            before = last
            cost = 1
            if source[row - 1] == target[column - 1]:
                cost = 0
                last = column
            matrix[row + 1][column + 1] = min(
                matrix[row][column] + cost,  # substitution
                matrix[row + 1][column] + 1,  # insertion
                matrix[row][column + 1] + 1,  # deletion
                matrix[previous][before] + (row - previous - 1) + 1 + (column - before - 1),  # transposition
            )
        seen[source[row - 1]] = row

    return matrix[len(source) + 1][len(target) + 1]


def closest(token, names, prefix="-", /):
    """
    return the name closest to `token`, or None.

    - prefix characters are stripped from the front of the token and of every name.
    - the first name (in the given order) with the smallest distance wins.
    - nothing is suggested when the smallest distance is greater than one.
    """
    stripped = token.lstrip(prefix)

    best, smallest = None, None
    for name in names:
        score = distance(stripped, name.lstrip(prefix))
        if smallest is None or score < smallest:
            best, smallest = name, score

    if smallest is None or smallest > THRESHOLD:
        return None
    return best


__all__ = (
    "distance",
    "closest",
)
