"""Runtime configuration for gridplay."""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the repository root
_env_path = Path(__file__).parent.parent / '.env'
load_dotenv(_env_path)


def _get_int(key: str, default: int) -> int:
    """Get integer from environment."""
    return int(os.getenv(key, str(default)))


def _get_float(key: str, default: float) -> float:
    """Get float from environment."""
    return float(os.getenv(key, str(default)))


def _get_optional_int(key: str) -> Optional[int]:
    """Get integer from environment, or None when unset/blank."""
    val = os.getenv(key, '').strip()
    return int(val) if val else None


# Room grid (fixed by the project format)
ROOM_SIZE = 16

# Tile animation advances one frame per FRAME_DURATION seconds
FRAME_DURATION = _get_float('GRIDPLAY_FRAME_DURATION', 0.4)

# Default per-glyph reveal pacing for dialogue pages (0 = instant)
GLYPH_REVEAL_DELAY = _get_float('GRIDPLAY_GLYPH_REVEAL_DELAY', 0.05)

# Seed for the default shuffle source (None = system entropy)
SHUFFLE_SEED = _get_optional_int('GRIDPLAY_SHUFFLE_SEED')

# Launcher display settings
DISPLAY_SCALE = _get_int('GRIDPLAY_DISPLAY_SCALE', 32)
FPS = _get_int('GRIDPLAY_FPS', 30)

# Error presentation
ERROR_STYLE = {
    'glyphRevealDelay': 0,
    'panelColor': '#FF0000',
    'textColor': '#FFFFFF',
}
MISSING_AVATAR_MESSAGE = 'NO EVENT WITH is-player TAG FOUND'
SCRIPT_ERROR_PREFIX = 'SCRIPT ERROR:\n'
