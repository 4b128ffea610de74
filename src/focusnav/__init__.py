"""focusnav - headless focus navigation for multi-step data-entry forms.

The engine decides which field holds input focus, in what order fields are
traversed, how nested modal scopes isolate navigation, and how a step
indicator reflects progress. Rendering is left to the caller; see
``focusnav.qt`` for the PyQt6 binding.
"""

from .engine.engine import FocusEngine
from .engine.errors import (
    ActivationError,
    ErrorRecord,
    FocusError,
    NavigationError,
    RegistrationError,
    ScopeError,
    ValidationError,
)
from .engine.flow import FlowNode, FocusFlow, create_flow, validate_flow
from .engine.models import (
    ClickAdvance,
    EngineSnapshot,
    FocusableElement,
    FocusChangeReason,
    FocusScope,
    HistoryEntry,
    ModalOptions,
    MouseNavigationConfig,
    NavigationMode,
    NavigationOptions,
    PointerInteraction,
    ScopeKind,
    StepIndicatorData,
    StepMetadata,
    StepStatus,
)
from .engine.scheduler import ImmediateScheduler, QueuedScheduler, Scheduler
from .engine.steps import current_step_index, progress_percentage
from .services.event_bus import EventBus, FocusEvent
from .services.settings_service import EngineSettings

__version__ = "0.1.0"

__all__ = [
    "FocusEngine",
    "EngineSettings",
    "EventBus",
    "FocusEvent",
    "Scheduler",
    "ImmediateScheduler",
    "QueuedScheduler",
    "FocusableElement",
    "FocusScope",
    "FocusChangeReason",
    "NavigationMode",
    "NavigationOptions",
    "MouseNavigationConfig",
    "ClickAdvance",
    "StepMetadata",
    "StepStatus",
    "StepIndicatorData",
    "ScopeKind",
    "ModalOptions",
    "HistoryEntry",
    "PointerInteraction",
    "EngineSnapshot",
    "FlowNode",
    "FocusFlow",
    "create_flow",
    "validate_flow",
    "current_step_index",
    "progress_percentage",
    "FocusError",
    "RegistrationError",
    "ScopeError",
    "ValidationError",
    "NavigationError",
    "ActivationError",
    "ErrorRecord",
]
