"""
SEEDFORGE - Engine Configuration

Environment-driven settings for the generative core. Values are read once at
import time (after `load_dotenv()`), so a `.env` file in the working directory
can override any default.

    SEEDFORGE_STRICT_EXPRESSIONS=1     # raise on unparsable rule strings
    SEEDFORGE_LOG_LEVEL=DEBUG
    SEEDFORGE_SHARE_URL_PREFIX=/play/
    SEEDFORGE_DIFFICULTY_POINTS=10
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).parent.parent


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ============================================================
# Engine Configuration
# ============================================================

class EngineConfig:

    # --- Rule expressions ---
    # Permissive by default: unknown conditions evaluate true and unknown
    # effects become opaque "custom" signals. Strict mode is meant for
    # content authoring and test runs.
    STRICT_EXPRESSIONS = _env_flag("SEEDFORGE_STRICT_EXPRESSIONS")

    # --- Seed codes ---
    SHARE_URL_PREFIX = os.getenv("SEEDFORGE_SHARE_URL_PREFIX", "/play/")

    # --- Generation ---
    DIFFICULTY_CURVE_POINTS = int(os.getenv("SEEDFORGE_DIFFICULTY_POINTS", "10"))

    # --- Logging ---
    LOG_LEVEL = os.getenv("SEEDFORGE_LOG_LEVEL", "INFO").upper()

    @classmethod
    def as_dict(cls) -> dict:
        return {
            "strict_expressions": cls.STRICT_EXPRESSIONS,
            "share_url_prefix": cls.SHARE_URL_PREFIX,
            "difficulty_curve_points": cls.DIFFICULTY_CURVE_POINTS,
            "log_level": cls.LOG_LEVEL,
        }


# ============================================================
# Logging
# ============================================================

def configure_logging(level: str = None) -> logging.Logger:
    """Attach a single stream handler to the `seedforge` logger tree."""
    logger = logging.getLogger("seedforge")
    if not logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", datefmt="%H:%M:%S"))
        logger.addHandler(_h)
    logger.setLevel(getattr(logging, (level or EngineConfig.LOG_LEVEL).upper(), logging.INFO))
    return logger
