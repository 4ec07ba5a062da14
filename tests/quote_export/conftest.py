"""
Shared quote fixtures for export tests.
"""

from __future__ import annotations

import pytest

from src.quote_export.quote import QuoteDocument
from tests.quote_export.support import build_sample_quote


@pytest.fixture
def sample_quote() -> QuoteDocument:
    return build_sample_quote()
