"""Tests for request matching and header flattening.

Uses YAML test fixtures from tests/fixtures/.
"""

from urllib.parse import urlparse, urlsplit

import pytest

from headers_file import HeadersFile, flatten, match_rule, parse_headers
from headers_file.matcher import request_parts
from headers_file.types import Header, Pattern, Rule

from conftest import load_fixture

# =============================================================================
# Fixture-driven match tests
# =============================================================================

MATCH_FIXTURE = load_fixture("headers_match")


def generate_match_test_cases():
    """Generate individual test cases from the match fixture."""
    cases = []
    for test in MATCH_FIXTURE["tests"]:
        for case in test["cases"]:
            case_id = f"{test['name']} - {case['name']}"
            cases.append((case_id, test["input"], case["url"], case["headers"]))
    return cases


MATCH_TEST_CASES = generate_match_test_cases()


@pytest.mark.parametrize(
    "case_id,text,url,expected",
    MATCH_TEST_CASES,
    ids=[c[0] for c in MATCH_TEST_CASES],
)
def test_match_fixture(case_id, text, url, expected):
    """Match a URL against a parsed headers file."""
    actual = parse_headers(text).match(url)

    assert sorted(actual) == sorted(expected), (
        f"Header mismatch for '{case_id}':\n"
        f"Input:\n{text}\n"
        f"URL: {url}\n"
        f"Expected: {expected}, Got: {actual}"
    )


# =============================================================================
# HeadersFile
# =============================================================================


class TestHeadersFileMatch:
    def test_host_and_path_union(self, sample_file):
        """A request matching a path rule and a host rule gets both."""
        out = sample_file.match("https://myproject.pages.dev/secure/page")
        assert len(out) == 4
        assert set(out) == {
            "X-Frame-Options: DENY",
            "X-Content-Type-Options: nosniff",
            "Referrer-Policy: no-referrer",
            "X-Robots-Tag: noindex",
        }

    def test_accepts_split_result(self, sample_file):
        assert sample_file.match(urlsplit("https://example.com/secure/page")) == [
            "X-Frame-Options: DENY",
            "X-Content-Type-Options: nosniff",
            "Referrer-Policy: no-referrer",
        ]

    def test_accepts_parse_result(self, sample_file):
        assert sample_file.match(urlparse("https://myproject.pages.dev/")) == ["X-Robots-Tag: noindex"]

    def test_exact_rule_headers_in_listed_order(self, sample_file):
        assert sample_file.match("https://example.com/secure/page") == [
            "X-Frame-Options: DENY",
            "X-Content-Type-Options: nosniff",
            "Referrer-Policy: no-referrer",
        ]

    def test_unparseable_url_matches_nothing(self, sample_file):
        assert sample_file.match("https://[broken/secure/page") == []

    def test_empty_file(self):
        assert HeadersFile().match("https://example.com/") == []

    def test_header_stack_keeps_detach_entries(self):
        parsed = parse_headers("/*\n  X-A: 1\n/*.jpg\n  ! X-A\n")
        assert parsed.header_stack("https://example.com/a.jpg") == [
            Header("X-A", "1"),
            Header("X-A", detach=True),
        ]

    def test_matching_rules(self, sample_file):
        assert sample_file.matching_rules("https://myproject.pages.dev/static/a.css") == [1, 2]
        assert sample_file.matching_rules("https://example.com/nothing") == []

    def test_sequence_protocol(self, sample_file):
        assert len(sample_file) == 3
        assert sample_file[0].pattern.path == "/secure/page"
        assert [rule.pattern.host for rule in sample_file] == ["", "", "myproject.pages.dev"]

    def test_is_immutable(self, sample_file):
        with pytest.raises(AttributeError):
            sample_file.rules = ()

    def test_flatten_exposed_on_file(self, sample_file):
        assert sample_file.flatten([Header("A", "1")]) == ["A: 1"]
        assert HeadersFile.flatten([Header("A", "1")]) == ["A: 1"]


class TestRequestParts:
    def test_scheme_and_port_dropped(self):
        assert request_parts("http://Example.com:8080/a%20b") == ("example.com", "/a b")

    def test_no_host(self):
        assert request_parts("/relative/path") == ("", "/relative/path")

    def test_unparseable(self):
        assert request_parts("http://[::1/") is None


# =============================================================================
# match_rule
# =============================================================================


def _rule(path="", host="", headers=()):
    return Rule(Pattern(scheme="https" if host else "", host=host, path=path, raw_path=path), tuple(headers))


class TestMatchRule:
    def test_host_rule_ignores_path(self):
        rule = _rule(host="example.com", path="/only/here", headers=[Header("X", "1")])
        assert match_rule(rule, "example.com", "/somewhere/else") == [Header("X", "1")]

    def test_host_rule_needs_host(self):
        rule = _rule(host="example.com", path="/", headers=[Header("X", "1")])
        assert match_rule(rule, "", "/") is None

    def test_path_rule_ignores_host(self):
        rule = _rule(path="/a", headers=[Header("X", "1")])
        assert match_rule(rule, "anything.example", "/a") == [Header("X", "1")]

    def test_host_placeholder_substitution(self):
        rule = _rule(host=":tenant.example.com", path="/*", headers=[Header("X-Tenant", ":tenant")])
        assert match_rule(rule, "acme.example.com", "/") == [Header("X-Tenant", "acme")]

    def test_no_match(self):
        assert match_rule(_rule(path="/a"), "", "/b") is None

    def test_match_without_headers(self):
        assert match_rule(_rule(path="/a"), "", "/a") == []


# =============================================================================
# flatten
# =============================================================================


class TestFlatten:
    def test_join_in_order(self):
        headers = [Header("X-A", "1"), Header("X-B", "b"), Header("X-A", "2")]
        assert flatten(headers) == ["X-A: 1,2", "X-B: b"]

    def test_detach_clears_earlier_values(self):
        headers = [Header("X-A", "1"), Header("X-A", "2"), Header("X-A", detach=True)]
        assert flatten(headers) == []

    def test_readd_after_detach(self):
        headers = [Header("X-A", "1"), Header("X-A", detach=True), Header("X-A", "3")]
        assert flatten(headers) == ["X-A: 3"]

    def test_detach_of_unknown_name(self):
        assert flatten([Header("X-A", detach=True), Header("X-B", "b")]) == ["X-B: b"]

    def test_detach_is_exact_name(self):
        headers = [Header("X-A", "1"), Header("x-a", detach=True)]
        assert flatten(headers) == ["X-A: 1"]

    def test_detach_value_ignored(self):
        headers = [Header("X-A", "1"), Header("X-A", "ignored", detach=True)]
        assert flatten(headers) == []

    def test_empty_value_kept(self):
        assert flatten([Header("X-Empty", "")]) == ["X-Empty: "]

    def test_empty(self):
        assert flatten([]) == []

    def test_accepts_iterables(self):
        assert flatten(h for h in [Header("A", "1")]) == ["A: 1"]
