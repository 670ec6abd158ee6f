"""Headers file rule types and data structures."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Header:
    """A header directive inside a rule block.

    A detach header (``! Name``) removes the values accumulated so far for
    ``name``; its ``value`` is ignored.
    """

    name: str
    value: str = ""
    detach: bool = False


@dataclass(frozen=True)
class Pattern:
    """The host/path template a request is tested against.

    ``host`` is set only for absolute URL patterns and never includes a port.
    ``path`` is percent-decoded for matching, ``raw_path`` is the path as written.
    """

    scheme: str = ""
    host: str = ""
    path: str = ""
    raw_path: str = ""

    @property
    def is_absolute(self) -> bool:
        return bool(self.host)


@dataclass(frozen=True)
class Rule:
    """A pattern and the headers to apply when it matches."""

    pattern: Pattern
    headers: tuple[Header, ...] = field(default_factory=tuple)
