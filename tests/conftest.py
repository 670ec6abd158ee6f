"""Shared test fixtures."""

import sys
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from headers_file import parse_headers
from headers_file import logging as headers_logging

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SAMPLE_HEADERS = """\
# This is a comment
/secure/page
  X-Frame-Options: DENY
  X-Content-Type-Options: nosniff
  Referrer-Policy: no-referrer

/static/*
  Access-Control-Allow-Origin: *
  X-Robots-Tag: nosnippet

https://myproject.pages.dev/*
  X-Robots-Tag: noindex
"""


def load_fixture(name: str) -> dict:
    """Load a YAML test fixture."""
    path = FIXTURES_DIR / f"{name}.yaml"
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo CLI logging setup between tests."""
    yield
    headers_logging.close_logging()


@pytest.fixture
def sample_file():
    """The sample headers file, parsed."""
    return parse_headers(SAMPLE_HEADERS)


@pytest.fixture
def sample_path(tmp_path):
    """The sample headers file, written to disk."""
    path = tmp_path / "_headers"
    path.write_text(SAMPLE_HEADERS, encoding="utf-8")
    return path
