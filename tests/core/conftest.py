"""Pytest fixtures for core tests."""

import pytest


@pytest.fixture
def sample_source():
    """Well-formed, fully valid KanjiVG source for 右."""
    from tests.core.svg_test_helpers import SAMPLE_SVG

    return SAMPLE_SVG


@pytest.fixture
def sample_document(sample_source):
    """The sample parsed into a Document."""
    from kvglint.core.models import Document
    from kvglint.core.parser import parse

    document = parse(sample_source)
    assert isinstance(document, Document), str(document)
    return document


@pytest.fixture
def rules_config():
    """Default rules configuration."""
    from kvglint.core.rules import RulesConfig

    return RulesConfig()
