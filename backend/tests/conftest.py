import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture
def fresh_font_cache():
    """Font lookups resolved from scratch, e.g. after pointing FONT_DIR elsewhere."""
    from services.fonts import load_font

    load_font.cache_clear()
    yield load_font
    load_font.cache_clear()
