"""Shared fixtures for validation tests."""

import pytest

from core.validation import RequestContext


@pytest.fixture
def make_context():
    """Build a RequestContext from keyword sources."""

    def factory(**sources) -> RequestContext:
        return RequestContext(**sources)

    return factory
