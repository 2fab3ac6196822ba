"""Root pytest configuration.

This module provides:
- Environment setup (loads .env)
- Auto-skipping of integration tests when no LLM API key is configured
"""

from __future__ import annotations

import pytest
from dotenv import load_dotenv

from whiteboard_ai.config import get_available_llm_providers

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    """Skip tests that call real model APIs when no provider key is set."""
    if get_available_llm_providers():
        return

    skip_llm = pytest.mark.skip(reason="No LLM API key configured")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_llm)
