"""Global configuration and constants for the focus-navigation engine."""

from __future__ import annotations

import os
from typing import Final

DEFAULT_SCOPE_ID: Final = "default"
DEFAULT_MAX_HISTORY: Final = int(os.environ.get("FOCUSNAV_MAX_HISTORY", "50"))
DEFAULT_POINTER_THRESHOLD: Final = float(os.environ.get("FOCUSNAV_POINTER_THRESHOLD", "5"))
DEFAULT_MODE_SETTLE_SECONDS: Final = 3.0  # hybrid -> single modality after this much idle
DEFAULT_MODE_HISTORY: Final = 10
DEFAULT_POINTER_INTERACTIONS: Final = 50
DEFAULT_ERROR_CAPACITY: Final = 20
DEBUG: Final = os.environ.get("FOCUSNAV_DEBUG", "").lower() in {"1", "true", "yes"}

# Keys that count as keyboard navigation for mode classification
NAVIGATION_KEYS: Final = frozenset(
    {"Tab", "Enter", "Space", "ArrowUp", "ArrowDown", "ArrowLeft", "ArrowRight", "Escape"}
)
