"""Composition root for a focus engine.

Responsibilities:
 - Build one ``FocusEngine`` with its own ``EventBus`` and settings
 - Pick the deferred-activation scheduler (Qt event loop when a
   QApplication is running, immediate otherwise)
 - Attach the diagnostics ``LoggingService`` to the ``focusnav`` loggers
 - Hand back a single context object owning those references, with an
   explicit ``dispose``; nothing is kept at module level

The module avoids importing PyQt6 at import time so headless callers and
test collection never need a GUI stack.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from focusnav.engine.engine import FocusEngine
from focusnav.engine.scheduler import ImmediateScheduler, Scheduler
from focusnav.services.event_bus import EventBus
from focusnav.services.logging_service import LoggingService
from focusnav.services.settings_service import EngineSettings

__all__ = ["EngineContext", "create_engine"]

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """References created by ``create_engine``.

    Attributes
    ----------
    engine: The focus engine owning all navigation state
    event_bus: Bus the engine publishes state changes on
    scheduler: Deferred-activation scheduler the engine was built with
    settings: Settings the engine was built with
    logging_service: Diagnostics log capture (None when capture disabled)
    started_at: Monotonic timestamp when bootstrap started
    metadata: Free-form details about the chosen wiring
    """

    engine: FocusEngine
    event_bus: EventBus
    scheduler: Scheduler
    settings: EngineSettings
    logging_service: Optional[LoggingService]
    started_at: float
    metadata: dict[str, Any] = field(default_factory=dict)
    disposed: bool = False

    def dispose(self) -> None:
        """Tear down the engine and release every service of this root. Idempotent."""
        if self.disposed:
            return
        self.engine.dispose()
        if self.logging_service is not None:
            self.logging_service.detach()
        self.event_bus.clear()
        cancel_all = getattr(self.scheduler, "cancel_all", None)
        if cancel_all is not None:
            cancel_all()
        self.disposed = True

    def __enter__(self) -> "EngineContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def _default_scheduler() -> Scheduler:
    try:
        from PyQt6.QtCore import QCoreApplication  # type: ignore
    except Exception:  # noqa: BLE001 - Qt is optional for headless roots
        return ImmediateScheduler()
    if QCoreApplication.instance() is None:
        return ImmediateScheduler()
    from focusnav.qt.scheduler import QtScheduler

    return QtScheduler()


def create_engine(
    *,
    settings: Optional[EngineSettings] = None,
    scheduler: Optional[Scheduler] = None,
    capture_logs: bool = True,
    log_capacity: int = 200,
) -> EngineContext:
    """Create and wire a focus engine.

    Parameters
    ----------
    settings: Engine settings; defaults to ``EngineSettings.from_env()``.
    scheduler: Deferred-activation scheduler. If None, a ``QtScheduler`` is
        used when a Qt application exists, else an ``ImmediateScheduler``.
    capture_logs: Attach a ``LoggingService`` ring buffer to ``focusnav.*``.
    """
    started = time.perf_counter()
    settings = settings or EngineSettings.from_env()
    scheduler = scheduler or _default_scheduler()
    bus = EventBus()

    log_service: Optional[LoggingService] = None
    if capture_logs:
        log_service = LoggingService(log_capacity, event_bus=bus)
        log_service.attach(logging.DEBUG if settings.debug else logging.INFO)

    engine = FocusEngine(settings=settings, scheduler=scheduler, event_bus=bus)

    ctx = EngineContext(
        engine=engine,
        event_bus=bus,
        scheduler=scheduler,
        settings=settings,
        logging_service=log_service,
        started_at=started,
        metadata={
            "scheduler": type(scheduler).__name__,
            "capture_logs": capture_logs,
            "bootstrap_s": time.perf_counter() - started,
        },
    )
    logger.debug("focus engine created (scheduler=%s)", ctx.metadata["scheduler"])
    return ctx
