"""Data model for the focus engine.

All records are plain dataclasses with no widget references. A rendering layer
describes each focusable unit with a ``FocusableElement`` (id, ordering, scope,
predicates and an injected ``activate`` callback) and the engine only ever
deals in those ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Union

from config import settings

__all__ = [
    "FocusChangeReason",
    "NavigationMode",
    "ScopeKind",
    "StepStatus",
    "ClickAdvance",
    "Predicate",
    "MouseNavigationConfig",
    "StepMetadata",
    "FocusableElement",
    "FocusScope",
    "ModalOptions",
    "ModalStackEntry",
    "HistoryEntry",
    "PointerInteraction",
    "NavigationOptions",
    "StepIndicatorData",
    "EngineSnapshot",
]

# A gatekeeping predicate receives the id of the other side of the transition
# (target for can_leave, source for can_receive) and answers sync or async.
Predicate = Callable[[Optional[str]], Union[bool, Awaitable[bool]]]


class FocusChangeReason(str, Enum):
    KEYBOARD = "keyboard"
    POINTER = "pointer"
    PROGRAMMATIC = "programmatic"
    VALIDATION = "validation"
    SCOPE_OPEN = "scope-open"
    SCOPE_CLOSE = "scope-close"
    ESCAPE = "escape"


class NavigationMode(str, Enum):
    KEYBOARD = "keyboard"
    POINTER = "pointer"
    HYBRID = "hybrid"
    AUTO = "auto"


class ScopeKind(str, Enum):
    MODAL = "modal"
    DROPDOWN = "dropdown"
    MENU = "menu"
    DEFAULT = "default"


class StepStatus(str, Enum):
    COMPLETE = "complete"
    CURRENT = "current"
    UPCOMING = "upcoming"
    DISABLED = "disabled"


class ClickAdvance(str, Enum):
    NEXT = "next"
    SPECIFIC = "specific"
    NONE = "none"


@dataclass(frozen=True)
class MouseNavigationConfig:
    """Pointer behaviour of one element.

    ``allow_direct_jump`` is tri-state: ``None`` defers to the engine-wide
    ``allow_jump_to_any`` policy, ``False`` refuses it explicitly.
    """

    allow_direct_jump: Optional[bool] = None
    preserve_flow_on_interaction: bool = False
    click_advances: ClickAdvance = ClickAdvance.NONE
    click_advances_to: Optional[str] = None


@dataclass(frozen=True)
class StepMetadata:
    label: str
    description: Optional[str] = None
    # Sync predicate; True means the step is bypassed and projected as disabled
    skip_if: Optional[Callable[[], bool]] = None


@dataclass(frozen=True)
class FocusableElement:
    """Registered navigable unit.

    ``activate`` is the rendering layer's callback that gives the on-screen
    control input focus; the engine never holds the control itself.
    """

    id: str
    order: int
    scope_id: str = settings.DEFAULT_SCOPE_ID
    activate: Optional[Callable[[], None]] = None
    skip_in_navigation: bool = False
    required: bool = False
    can_receive_focus: Optional[Predicate] = None
    can_leave_focus: Optional[Predicate] = None
    mouse_navigation: MouseNavigationConfig = field(default_factory=MouseNavigationConfig)
    step_metadata: Optional[StepMetadata] = None
    parent_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    registered_at: float = 0.0


@dataclass(frozen=True)
class FocusScope:
    id: str
    kind: ScopeKind = ScopeKind.DEFAULT
    parent_scope_id: Optional[str] = None
    trap_focus: bool = False
    restore_focus: bool = True
    restore_focus_to: Optional[str] = None
    auto_activate_first: bool = False
    on_close: Optional[Callable[[], None]] = None
    created_at: float = 0.0


@dataclass(frozen=True)
class ModalOptions:
    close_on_escape: bool = True
    close_on_outside_click: bool = True
    prevent_scroll: bool = False


@dataclass(frozen=True)
class ModalStackEntry:
    scope_id: str
    previous_focus_id: Optional[str]
    options: ModalOptions = field(default_factory=ModalOptions)


@dataclass(frozen=True)
class HistoryEntry:
    element_id: str
    scope_id: str
    reason: FocusChangeReason
    timestamp: float
    previous_element_id: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PointerInteraction:
    element_id: str
    timestamp: float
    position: Tuple[float, float]
    was_valid: bool


@dataclass(frozen=True)
class NavigationOptions:
    """Per-request navigation knobs.

    ``wrap=None`` means "use the engine default" (``EngineSettings.default_wrap``).
    ``scope_id`` targets a specific open scope instead of the top one.
    """

    wrap: Optional[bool] = None
    skip_validation: bool = False
    include_skipped: bool = False
    include_ancestors: bool = False
    custom_filter: Optional[Callable[[FocusableElement], bool]] = None
    scope_id: Optional[str] = None


@dataclass(frozen=True)
class StepIndicatorData:
    id: str
    label: str
    order: int
    status: StepStatus
    is_clickable: bool
    description: Optional[str] = None


@dataclass(frozen=True)
class EngineSnapshot:
    active_element_id: Optional[str]
    scope_ids: Tuple[str, ...]
    navigation_mode: NavigationMode
    history_index: int
    history_length: int
    steps: Tuple[StepIndicatorData, ...]
