"""Request matching engine - evaluates a URL against headers file rules."""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator
from urllib.parse import ParseResult, SplitResult, unquote, urlsplit

from .patterns import HOST_DELIMITER, PATH_DELIMITER, match_fragment, substitute
from .types import Header, Rule

logger = logging.getLogger(__name__)

URLLike = str | SplitResult | ParseResult


def request_parts(url: URLLike) -> tuple[str, str] | None:
    """Extract ``(hostname, path)`` from a request URL.

    Scheme and port are dropped. Returns None for a string that cannot be
    split as a URL.
    """
    if isinstance(url, str):
        try:
            url = urlsplit(url)
        except ValueError:
            logger.debug("Unparseable request URL: %r", url)
            return None
    return url.hostname or "", unquote(url.path)


def match_rule(rule: Rule, hostname: str, path: str) -> list[Header] | None:
    """Check a request against one rule.

    Rules with a host match on the hostname alone; the path is not checked.
    Other rules match on the path. Returns the rule's headers with any
    capture substituted, or None if the rule does not apply.
    """
    if rule.pattern.is_absolute:
        matched = match_fragment(rule.pattern.host, hostname, HOST_DELIMITER)
    else:
        matched = match_fragment(rule.pattern.path, path, PATH_DELIMITER)

    if matched is None:
        return None
    return substitute(rule.headers, matched.token, matched.capture)


def flatten(headers: Iterable[Header]) -> list[str]:
    """Flatten a header stack into ``"Name: value"`` lines.

    Values for the same name are joined with a comma in stack order. A detach
    entry drops the values collected so far for its name; later entries may
    add the name again. Names left without values produce no line.
    """
    collected: dict[str, list[str]] = {}
    for header in headers:
        if header.detach:
            collected.pop(header.name, None)
            continue
        collected.setdefault(header.name, []).append(header.value)

    return [f"{name}: {','.join(values)}" for name, values in collected.items()]


@dataclass(frozen=True)
class HeadersFile:
    """An ordered, immutable set of rules parsed from a headers file.

    Declaration order is evaluation order: a later rule's headers are stacked
    after an earlier rule's, and a detach only affects headers stacked before it.
    """

    rules: tuple[Rule, ...] = ()

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __getitem__(self, index: int) -> Rule:
        return self.rules[index]

    def header_stack(self, url: URLLike) -> list[Header]:
        """Collect the headers of every matching rule, in declaration order."""
        parts = request_parts(url)
        if parts is None:
            return []
        hostname, path = parts

        stack: list[Header] = []
        for rule in self.rules:
            headers = match_rule(rule, hostname, path)
            if headers is not None:
                stack.extend(headers)
        return stack

    def matching_rules(self, url: URLLike) -> list[int]:
        """Return the indices of the rules that apply to a URL."""
        parts = request_parts(url)
        if parts is None:
            return []
        hostname, path = parts
        return [
            i for i, rule in enumerate(self.rules)
            if match_rule(rule, hostname, path) is not None
        ]

    def match(self, url: URLLike) -> list[str]:
        """Return the header lines that apply to a request URL.

        The order of distinct header names is not significant.
        """
        return flatten(self.header_stack(url))

    flatten = staticmethod(flatten)
