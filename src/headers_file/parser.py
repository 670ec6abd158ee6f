"""Headers file parser - converts ``_headers`` text to an ordered rule set.

Each physical line is classified with a small PEG grammar (parsimonious):
blank and comment lines are ignored, indented lines are header directives
for the open pattern, anything else opens a new pattern. Rules are built by
threading an immutable ``ParseState`` through ``process_line``.
"""

import io
import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, Literal
from urllib.parse import unquote, urlsplit

from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from .defaults import NO_LIMITS, ParseLimits
from .errors import (
    InputReadFailure,
    InvalidPort,
    InvalidScheme,
    LineTooLong,
    MalformedHeaderLine,
    MalformedPatternLine,
    TooManyRules,
)
from .matcher import HeadersFile
from .patterns import PLACEHOLDER_RE
from .types import Header, Pattern, Rule

logger = logging.getLogger(__name__)

# =============================================================================
# PEG Grammar (one physical line, trailing newline removed)
# =============================================================================

GRAMMAR = Grammar(r"""
line            = blank / comment_line / directive_line / pattern_line
blank           = ~"\\s*\\Z"
comment_line    = ~"\\s*#" rest
directive_line  = indent directive
indent          = ~"[ \\t]\\s*"
directive       = detach / header / malformed
detach          = "!" rest
header          = header_name ":" rest
header_name     = ~"[^:]*"
malformed       = ~".*"s
pattern_line    = ~".*"s
rest            = ~".*"s
""")

LineKind = Literal["blank", "comment", "header", "detach", "malformed", "pattern"]


@dataclass(frozen=True)
class Line:
    """A classified line.

    ``text`` is the header name for header and detach lines, and the
    stripped pattern for pattern lines.
    """

    kind: LineKind
    text: str = ""
    value: str = ""


class LineVisitor(NodeVisitor):
    """Visits a line parse tree and returns a ``Line``."""

    def visit_line(self, node, visited_children):
        return visited_children[0]

    def visit_blank(self, node, visited_children):
        return Line("blank")

    def visit_comment_line(self, node, visited_children):
        return Line("comment")

    def visit_directive_line(self, node, visited_children):
        # indent directive
        _, directive = visited_children
        return directive

    def visit_directive(self, node, visited_children):
        return visited_children[0]

    def visit_detach(self, node, visited_children):
        # "!" rest
        _, rest = visited_children
        return Line("detach", text=rest.strip())

    def visit_header(self, node, visited_children):
        # header_name ":" rest
        name, _, rest = visited_children
        return Line("header", text=name, value=rest.strip())

    def visit_header_name(self, node, visited_children):
        return node.text

    def visit_malformed(self, node, visited_children):
        return Line("malformed", text=node.text.strip())

    def visit_pattern_line(self, node, visited_children):
        return Line("pattern", text=node.text.strip())

    def visit_rest(self, node, visited_children):
        return node.text

    def generic_visit(self, node, visited_children):
        return visited_children or node


_visitor = LineVisitor()


def classify_line(line: str) -> Line:
    """Classify one line of a headers file.

    Every line parses: anything that is not blank, a comment or indented is
    a pattern line, and is validated by ``parse_pattern``.
    """
    return _visitor.visit(GRAMMAR.parse(line))


# =============================================================================
# Pattern lines
# =============================================================================

ABSOLUTE_URL_RE = re.compile(r"^https?://(.*?)/")
HOST_PORT_RE = re.compile(r":[0-9]+$")
INVALID_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")

# Stands in for the host while the rest of an absolute URL is split, so that
# splats and placeholders in the host never reach the URL parser.
HOST_STAND_IN = "host.invalid"


def _split(text: str, line_num: int | None):
    try:
        return urlsplit(text)
    except ValueError as e:
        raise MalformedPatternLine(f"invalid pattern {text!r}: {e}", line_num, text) from e


def _fold_host(host: str) -> str:
    """Lowercase a host pattern. Placeholder tokens keep their case."""
    folded = []
    pos = 0
    for m in PLACEHOLDER_RE.finditer(host):
        folded.append(host[pos:m.start()].lower())
        folded.append(m.group(0))
        pos = m.end()
    folded.append(host[pos:].lower())
    return "".join(folded)


def parse_pattern(text: str, line_num: int | None = None) -> Pattern:
    """Parse a stripped pattern line into a Pattern.

    Absolute URLs must use https and must not carry a port. Everything else
    is read as a path-only URL reference. The host is lowercased to match
    request hostnames.
    """
    if CONTROL_CHAR_RE.search(text):
        raise MalformedPatternLine(f"invalid control character in pattern: {text!r}", line_num, text)
    if text.startswith(":"):
        raise MalformedPatternLine(f"missing scheme in pattern: {text!r}", line_num, text)

    absolute = ABSOLUTE_URL_RE.match(text)
    if absolute:
        host = absolute.group(1)
        if HOST_PORT_RE.search(host):
            raise InvalidPort(f"invalid port in rule: {text!r}", line_num, text)
        start, end = absolute.span(1)
        parts = _split(text[:start] + HOST_STAND_IN + text[end:], line_num)
    else:
        parts = _split(text, line_num)
        host = parts.netloc.rpartition("@")[2]
        if HOST_PORT_RE.search(host):
            raise InvalidPort(f"invalid port in rule: {text!r}", line_num, text)

    if parts.scheme and parts.scheme != "https":
        raise InvalidScheme(f"invalid scheme: {parts.scheme!r}", line_num, text)

    raw_path = parts.path
    if INVALID_ESCAPE_RE.search(raw_path):
        raise MalformedPatternLine(f"invalid escape in pattern path: {raw_path!r}", line_num, text)

    return Pattern(scheme=parts.scheme, host=_fold_host(host), path=unquote(raw_path), raw_path=raw_path)


# =============================================================================
# Accumulator
# =============================================================================


@dataclass(frozen=True)
class ParseState:
    """The open pattern and the headers collected for it so far."""

    pattern: Pattern | None = None
    headers: tuple[Header, ...] = ()


def finish(state: ParseState) -> Rule | None:
    """Close the open rule, if any."""
    if state.pattern is None:
        return None
    return Rule(pattern=state.pattern, headers=state.headers)


def process_line(
    state: ParseState,
    line: str,
    line_num: int | None = None,
) -> tuple[ParseState, Rule | None]:
    """Apply one line to the parse state.

    Returns the new state and the rule completed by this line, which is only
    set when a pattern line closes a previously open pattern.
    """
    parsed = classify_line(line)

    if parsed.kind in ("blank", "comment"):
        return state, None

    if parsed.kind == "pattern":
        completed = finish(state)
        pattern = parse_pattern(parsed.text, line_num)
        return ParseState(pattern=pattern), completed

    # Header directives need an open pattern
    if state.pattern is None:
        raise MalformedHeaderLine(f"header without pattern: {line!r}", line_num, line)

    if parsed.kind == "malformed":
        raise MalformedHeaderLine(f"invalid header: {line!r}", line_num, line)

    if parsed.kind == "detach":
        header = Header(name=parsed.text, detach=True)
    else:
        header = Header(name=parsed.text, value=parsed.value)
    return replace(state, headers=state.headers + (header,)), None


# =============================================================================
# Input
# =============================================================================


def _chomp(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _read_lines(stream: Iterable):
    """Yield ``(line_num, line)`` pairs, wrapping read errors."""
    lines = iter(stream)
    line_num = 0
    while True:
        try:
            raw = next(lines)
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
        except StopIteration:
            return
        except (OSError, UnicodeDecodeError) as e:
            raise InputReadFailure(f"failed to read input: {e}", line_num + 1) from e
        line_num += 1
        yield line_num, _chomp(raw)


def _add_rule(rules: list[Rule], rule: Rule, limits: ParseLimits, line_num: int | None) -> None:
    if limits.max_rules is not None and len(rules) >= limits.max_rules:
        raise TooManyRules(f"too many rules: the limit is {limits.max_rules}", line_num)
    logger.debug(
        "Rule %d: %s%s (%d header(s))",
        len(rules),
        rule.pattern.host,
        rule.pattern.raw_path,
        len(rule.headers),
    )
    rules.append(rule)


# =============================================================================
# Public API
# =============================================================================


def parse_headers(
    source: str | bytes | Iterable,
    limits: ParseLimits | None = None,
) -> HeadersFile:
    """Parse a headers file into an ordered rule set.

    Args:
        source: An open text (or UTF-8 binary) stream, any iterable of lines,
            or the whole file as a string.
        limits: Optional ParseLimits, e.g. CLOUDFLARE_PAGES_LIMITS.

    Raises:
        HeadersFileError: On the first invalid line, exceeded limit or read
            failure. No partial result is returned.
    """
    limits = limits or NO_LIMITS
    if isinstance(source, str):
        source = io.StringIO(source)
    elif isinstance(source, bytes):
        source = io.BytesIO(source)

    state = ParseState()
    rules: list[Rule] = []
    line_num = 0

    for line_num, line in _read_lines(source):
        if limits.max_line_length is not None and len(line) > limits.max_line_length:
            raise LineTooLong(
                f"line is {len(line)} characters, the limit is {limits.max_line_length}",
                line_num,
                line,
            )
        state, completed = process_line(state, line, line_num)
        if completed is not None:
            _add_rule(rules, completed, limits, line_num)

    completed = finish(state)
    if completed is not None:
        _add_rule(rules, completed, limits, line_num)

    logger.debug("Parsed %d rule(s) from %d line(s)", len(rules), line_num)
    return HeadersFile(tuple(rules))


def rule_to_dict(rule: Rule) -> dict:
    """Convert a Rule to a dictionary matching the test fixture format."""
    headers = []
    for header in rule.headers:
        if header.detach:
            headers.append({"name": header.name, "detach": True})
        else:
            headers.append({"name": header.name, "value": header.value})
    return {
        "pattern": {
            "scheme": rule.pattern.scheme,
            "host": rule.pattern.host,
            "path": rule.pattern.path,
            "raw_path": rule.pattern.raw_path,
        },
        "headers": headers,
    }
