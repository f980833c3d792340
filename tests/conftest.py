from unittest.mock import AsyncMock, MagicMock

import pytest

from ai_fallback import AIFallback


@pytest.fixture
def primary():
    """Stand-in for the Gemini adapter."""
    p = MagicMock()
    p.name = "gemini"
    p.generate_single = AsyncMock(return_value="primary text")
    p.generate_with_history = AsyncMock(return_value="primary text")
    p.extract_text_from_image = AsyncMock(return_value="image text")
    p.is_available = MagicMock(return_value=True)
    return p


@pytest.fixture
def secondary():
    """Stand-in for the Groq adapter."""
    s = MagicMock()
    s.name = "groq"
    s.generate = AsyncMock(return_value="secondary text")
    return s


@pytest.fixture
def ai(primary, secondary):
    return AIFallback(primary=primary, secondary=secondary)
