"""Runtime settings for one engine instance.

Defaults come from ``config.settings``; ``EngineSettings.from_env`` re-reads
the ``FOCUSNAV_*`` environment variables so a composition root can pick up
overrides at construction time. Each engine receives its own instance; there
is no shared singleton.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from config import settings
from focusnav.engine.models import NavigationMode


@dataclass
class EngineSettings:
    """Engine knobs.

    Attributes:
        max_history_size: History log capacity; oldest entries drop first.
        pointer_move_threshold: Pixels a pointer must travel (per axis) to
            count as movement for mode classification.
        mode_settle_seconds: Idle window after which ``hybrid`` settles to
            the one modality still in use.
        initial_mode: Starting navigation mode (``auto`` by default).
        default_wrap: Wrap policy for next/previous when a request does not
            say. A trapping scope always wraps.
        allow_jump_to_visited: Visited steps stay clickable and jumpable.
        allow_jump_to_any: Caller-level override granting direct jumps to
            elements that do not set ``allow_direct_jump`` themselves. An
            element's explicit ``allow_direct_jump=False`` wins over it.
        show_skipped_steps: Include disabled steps in the projection.
        debug: Raise the ``focusnav`` logger to DEBUG.
        enabled: Start with navigation enabled.
    """

    max_history_size: int = settings.DEFAULT_MAX_HISTORY
    pointer_move_threshold: float = settings.DEFAULT_POINTER_THRESHOLD
    mode_settle_seconds: float = settings.DEFAULT_MODE_SETTLE_SECONDS
    mode_history_length: int = settings.DEFAULT_MODE_HISTORY
    initial_mode: NavigationMode = NavigationMode.AUTO
    default_wrap: bool = False
    allow_jump_to_visited: bool = True
    allow_jump_to_any: bool = False
    show_skipped_steps: bool = True
    default_scope_id: str = settings.DEFAULT_SCOPE_ID
    pointer_interaction_capacity: int = settings.DEFAULT_POINTER_INTERACTIONS
    error_capacity: int = settings.DEFAULT_ERROR_CAPACITY
    debug: bool = settings.DEBUG
    enabled: bool = True

    @classmethod
    def from_env(cls) -> "EngineSettings":
        env = os.environ
        return cls(
            max_history_size=int(env.get("FOCUSNAV_MAX_HISTORY", settings.DEFAULT_MAX_HISTORY)),
            pointer_move_threshold=float(
                env.get("FOCUSNAV_POINTER_THRESHOLD", settings.DEFAULT_POINTER_THRESHOLD)
            ),
            debug=env.get("FOCUSNAV_DEBUG", "").lower() in {"1", "true", "yes"},
        )
