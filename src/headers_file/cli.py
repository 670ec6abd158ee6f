#!/usr/bin/env python3
"""Command-line utility to validate a headers file and preview matches.

Usage:
    python -m headers_file _headers
    python -m headers_file _headers --match https://example.com/secure/page
    python -m headers_file _headers --expect cases.yaml

Exit codes:
    0 - Valid headers file (and all expectations met)
    1 - Invalid headers file (or some expectations not met)
    2 - File not found, unreadable input or invalid YAML
"""

import argparse
import json
import os
import sys
from pathlib import Path

import yaml

from . import logging as headers_logging
from .defaults import PRESETS, get_limits
from .errors import HeadersFileError, InputReadFailure
from .matcher import HeadersFile
from .parser import parse_headers, rule_to_dict

DEFAULT_LIMITS = os.environ.get("HEADERS_FILE_LIMITS", "none")


def load_url_list(path: Path) -> list[str]:
    """Load request URLs from a file, one per line. Blank and # lines are skipped."""
    urls = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)
    return urls


def load_expectations(path: Path) -> list[dict]:
    """Load expectation cases from YAML.

    Format::

        tests:
          - url: https://example.com/secure/page
            headers:
              - "X-Frame-Options: DENY"
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict) or not isinstance(data.get("tests"), list):
        raise ValueError("expectations file must be a mapping with a 'tests' list")
    cases = []
    for i, case in enumerate(data["tests"]):
        if not isinstance(case, dict) or "url" not in case:
            raise ValueError(f"test {i} has no 'url'")
        cases.append({"url": case["url"], "headers": list(case.get("headers") or [])})
    return cases


def check_expectations(headers_file: HeadersFile, cases: list[dict]) -> list[dict]:
    """Match each case URL and return the cases whose headers differ.

    Header lines are compared as sets since the order of names is not
    significant. Each failure carries ``url``, ``expected`` and ``actual``.
    """
    failures = []
    for case in cases:
        actual = headers_file.match(case["url"])
        if set(actual) != set(case["headers"]):
            failures.append({
                "url": case["url"],
                "expected": sorted(case["headers"]),
                "actual": sorted(actual),
            })
    return failures


def format_match(headers_file: HeadersFile, url: str, verbose: bool = False) -> list[str]:
    """Format the headers matched for a URL for human-readable output."""
    out = [url]
    if verbose:
        indices = headers_file.matching_rules(url)
        rules = ", ".join(str(i) for i in indices) if indices else "none"
        out.append(f"  rules: {rules}")
    lines = sorted(headers_file.match(url))
    if not lines:
        out.append("  (no headers)")
    for line in lines:
        out.append(f"  {line}")
    return out


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Validate a _headers file and preview the headers applied to URLs.",
        epilog="Exit codes: 0=valid/all-met, 1=invalid/some-unmet, 2=file error",
    )
    parser.add_argument("headers_file", type=Path, help="Path to the _headers file")
    parser.add_argument(
        "--match",
        action="append",
        metavar="URL",
        default=[],
        help="Show the headers applied to URL (repeatable)",
    )
    parser.add_argument(
        "--urls",
        type=Path,
        metavar="FILE",
        help="Show the headers applied to each URL listed in FILE",
    )
    parser.add_argument(
        "--expect",
        type=Path,
        metavar="CASES.yaml",
        help="Check URLs against expected header lines",
    )
    parser.add_argument(
        "--dump-rules",
        action="store_true",
        help="Output all parsed rules as JSON to stdout",
    )
    parser.add_argument(
        "--limits",
        choices=list(PRESETS.keys()),
        default=DEFAULT_LIMITS if DEFAULT_LIMITS in PRESETS else "none",
        help="Parse limits preset (default from HEADERS_FILE_LIMITS, else 'none')",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show matching rule indices and debug logging",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only output errors, no summary"
    )

    args = parser.parse_args(argv)
    logger = headers_logging.init_logging(verbose=args.verbose)

    if not args.headers_file.exists():
        print(f"Error: File not found: {args.headers_file}", file=sys.stderr)
        sys.exit(2)

    try:
        with open(args.headers_file, encoding="utf-8") as f:
            headers_file = parse_headers(f, limits=get_limits(args.limits))
    except InputReadFailure as e:
        print(f"Error: Cannot read {args.headers_file}: {e}", file=sys.stderr)
        sys.exit(2)
    except HeadersFileError as e:
        print(f"{args.headers_file}: {e}", file=sys.stderr)
        if e.line is not None:
            print(f"  {e.line.strip()}", file=sys.stderr)
        if not args.quiet:
            print("\nValidation failed")
        sys.exit(1)

    logger.debug("Loaded %d rule(s) from %s", len(headers_file), args.headers_file)

    # Handle --dump-rules mode
    if args.dump_rules:
        print(json.dumps([rule_to_dict(rule) for rule in headers_file], indent=2))
        sys.exit(0)

    # Handle --expect mode
    if args.expect:
        if not args.expect.exists():
            print(f"Error: File not found: {args.expect}", file=sys.stderr)
            sys.exit(2)
        try:
            cases = load_expectations(args.expect)
        except (yaml.YAMLError, ValueError) as e:
            print(f"Error: Invalid expectations file: {e}", file=sys.stderr)
            sys.exit(2)

        failures = check_expectations(headers_file, cases)
        for failure in failures:
            print(f"FAIL {failure['url']}")
            print(f"  expected: {failure['expected']}")
            print(f"  actual:   {failure['actual']}")
        if not args.quiet:
            passed = len(cases) - len(failures)
            print(f"\nSummary: {passed} passed, {len(failures)} failed (out of {len(cases)})")
        sys.exit(1 if failures else 0)

    urls = list(args.match)
    if args.urls:
        if not args.urls.exists():
            print(f"Error: File not found: {args.urls}", file=sys.stderr)
            sys.exit(2)
        urls.extend(load_url_list(args.urls))

    for url in urls:
        print("\n".join(format_match(headers_file, url, verbose=args.verbose)))

    if not args.quiet and not urls:
        print(f"Validation passed: {len(headers_file)} rule(s)")

    sys.exit(0)


if __name__ == "__main__":
    main()
