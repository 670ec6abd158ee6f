"""Parse limit presets.

The hosting platform caps a project at 100 header rules and each line of the
headers file at 2,000 characters, including indentation, header name and
value. Limits are off unless a preset is selected.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseLimits:
    """Upper bounds enforced while parsing. None means unlimited."""

    max_rules: int | None = None
    max_line_length: int | None = None


NO_LIMITS = ParseLimits()

CLOUDFLARE_PAGES_LIMITS = ParseLimits(max_rules=100, max_line_length=2000)

# Registry of available presets
PRESETS = {
    "none": NO_LIMITS,
    "cloudflare-pages": CLOUDFLARE_PAGES_LIMITS,
}


def get_limits(name: str) -> ParseLimits | None:
    """Get a limits preset by name."""
    return PRESETS.get(name)
