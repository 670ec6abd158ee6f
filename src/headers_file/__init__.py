"""Headers file parsing and matching engine."""

from .defaults import CLOUDFLARE_PAGES_LIMITS, NO_LIMITS, PRESETS, ParseLimits, get_limits
from .errors import (
    HeadersFileError,
    InputReadFailure,
    InvalidPort,
    InvalidScheme,
    LimitExceeded,
    LineTooLong,
    MalformedHeaderLine,
    MalformedPatternLine,
    TooManyRules,
)
from .matcher import HeadersFile, flatten, match_rule
from .parser import ParseState, finish, parse_headers, parse_pattern, process_line, rule_to_dict
from .patterns import match_fragment, match_placeholder, match_splat
from .types import Header, Pattern, Rule

__all__ = [
    # Types
    "Header",
    "Pattern",
    "Rule",
    "HeadersFile",
    # Parser
    "parse_headers",
    "parse_pattern",
    "process_line",
    "finish",
    "ParseState",
    "rule_to_dict",
    # Matcher
    "flatten",
    "match_rule",
    "match_fragment",
    "match_splat",
    "match_placeholder",
    # Limits
    "ParseLimits",
    "NO_LIMITS",
    "CLOUDFLARE_PAGES_LIMITS",
    "PRESETS",
    "get_limits",
    # Errors
    "HeadersFileError",
    "MalformedHeaderLine",
    "MalformedPatternLine",
    "InvalidPort",
    "InvalidScheme",
    "InputReadFailure",
    "LimitExceeded",
    "TooManyRules",
    "LineTooLong",
]
