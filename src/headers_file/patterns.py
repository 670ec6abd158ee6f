"""Pattern fragment matching - splats, named placeholders and exact matches.

A fragment is either the host or the path of a rule pattern. It may hold one
splat (``*``) or one named placeholder (``:name``). Captures never contain
the fragment's delimiter, so a host capture stays inside one label and a path
capture stays inside one segment.
"""

import re
from dataclasses import dataclass

from .types import Header

HOST_DELIMITER = "."
PATH_DELIMITER = "/"

SPLAT = "*"
# Header values reference a splat capture by this name
SPLAT_TOKEN = ":splat"

PLACEHOLDER_RE = re.compile(r":[A-Za-z][A-Za-z0-9_]*")


@dataclass(frozen=True)
class FragmentMatch:
    """A successful fragment match.

    ``token`` is the text to substitute in header values (``:splat`` or the
    placeholder) and is None for an exact match.
    """

    token: str | None = None
    capture: str = ""


def _capture(prefix: str, suffix: str, value: str, delimiter: str) -> str | None:
    # Prefix and suffix may not overlap in the value: "a*a" does not match "a".
    if len(value) < len(prefix) + len(suffix):
        return None
    if not (value.startswith(prefix) and value.endswith(suffix)):
        return None
    captured = value[len(prefix) : len(value) - len(suffix)]
    if delimiter in captured:
        return None
    return captured


def match_splat(pattern: str, value: str, delimiter: str) -> str | None:
    """Match ``value`` against a pattern holding a ``*``.

    Returns the captured text, or None if the pattern has no splat or
    does not match.
    """
    if SPLAT not in pattern:
        return None
    prefix, _, suffix = pattern.partition(SPLAT)
    return _capture(prefix, suffix, value, delimiter)


def find_placeholder(pattern: str) -> str | None:
    """Return the first ``:name`` token in a pattern, if any.

    The name must start with an ASCII letter; ``:1page`` is plain text.
    """
    found = PLACEHOLDER_RE.search(pattern)
    return found.group(0) if found else None


def match_placeholder(pattern: str, value: str, delimiter: str) -> tuple[str, str] | None:
    """Match ``value`` against a pattern holding a named placeholder.

    Returns ``(placeholder, capture)`` or None.
    """
    placeholder = find_placeholder(pattern)
    if placeholder is None:
        return None
    prefix, _, suffix = pattern.partition(placeholder)
    captured = _capture(prefix, suffix, value, delimiter)
    if captured is None:
        return None
    return placeholder, captured


def match_fragment(pattern: str, value: str, delimiter: str) -> FragmentMatch | None:
    """Match a host or path fragment: splat first, then placeholder, then exact."""
    captured = match_splat(pattern, value, delimiter)
    if captured is not None:
        return FragmentMatch(token=SPLAT_TOKEN, capture=captured)

    placeholder_match = match_placeholder(pattern, value, delimiter)
    if placeholder_match is not None:
        placeholder, captured = placeholder_match
        return FragmentMatch(token=placeholder, capture=captured)

    if pattern == value:
        return FragmentMatch()
    return None


def substitute(headers: tuple[Header, ...], token: str | None, capture: str) -> list[Header]:
    """Replace the first ``token`` in each header value with ``capture``.

    Only one occurrence per value is replaced; later references are left
    as written.
    """
    if token is None:
        return list(headers)
    return [
        Header(
            name=header.name,
            value=header.value.replace(token, capture, 1),
            detach=header.detach,
        )
        for header in headers
    ]
