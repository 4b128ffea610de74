"""Focus engine.

Single owner of the navigation state for one composition root: the element
registry, the scope stack, the active element, the history log, the
navigation mode and the projected steps. All mutation goes through the public
methods below; the rendering layer observes changes through the event bus.

Concurrency model
-----------------
Single writer, single in flight. Navigation methods are coroutines because
validators may be asynchronous. While one request awaits validation, any
other navigation request is dropped (logged, ``NAVIGATION_DROPPED``
published, ``False`` returned) rather than queued. Each request captures the
state generation when it starts; every change to the active element or the
scope stack bumps the generation, and a request whose generation went stale
while it awaited is discarded instead of committed.

Deferred activations (scope restoration, auto-activation of a new scope,
click-advance) are handed to the injected ``Scheduler``; when the callback
runs, the resulting coroutine is started with ``submit``. Without a running
asyncio loop (a plain Qt application, synchronous callers) ``submit`` parks
the coroutine on an engine-owned loop and ``pump`` advances it; schedulers
that offer ``wake`` keep pumping until nothing is parked.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections import deque
from typing import Any, AbstractSet, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Set

from focusnav.services.event_bus import EventBus, EventHandler, FocusEvent, Subscription
from focusnav.services.settings_service import EngineSettings

from .errors import ActivationError, ErrorRecord, FocusError, NavigationError, ScopeError
from .flow import FocusFlow
from .history import HistoryLog
from .mode import ModeClassifier
from .models import (
    ClickAdvance,
    EngineSnapshot,
    FocusableElement,
    FocusChangeReason,
    FocusScope,
    HistoryEntry,
    ModalOptions,
    NavigationMode,
    NavigationOptions,
    PointerInteraction,
    Predicate,
    ScopeKind,
    StepIndicatorData,
    StepStatus,
)
from .navigation import Navigator
from .registry import ElementRegistry
from .scheduler import ImmediateScheduler, Scheduler
from .scopes import ScopeStack
from .steps import StepProjector
from .validation import ValidationPipeline

__all__ = ["FocusEngine"]

logger = logging.getLogger(__name__)

# Loop iterations one ``pump`` may run; each one handles only callbacks already due.
_PUMP_ITERATIONS = 64


class FocusEngine:
    def __init__(
        self,
        *,
        settings: Optional[EngineSettings] = None,
        scheduler: Optional[Scheduler] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings or EngineSettings()
        self._scheduler: Scheduler = scheduler or ImmediateScheduler()
        self._bus = event_bus or EventBus()
        self._clock = clock
        cfg = self._settings

        self._registry = ElementRegistry(clock)
        self._scopes = ScopeStack(cfg.default_scope_id, clock)
        self._history = HistoryLog(cfg.max_history_size)
        self._pipeline = ValidationPipeline(on_error=self._store_error)
        self._navigator = Navigator(self._registry, self._scopes, self._pipeline)
        self._mode = ModeClassifier(
            initial_mode=cfg.initial_mode,
            pointer_threshold=cfg.pointer_move_threshold,
            settle_seconds=cfg.mode_settle_seconds,
            history_length=cfg.mode_history_length,
            clock=clock,
            on_change=self._on_mode_change,
        )
        self._projector = StepProjector(
            allow_jump_to_visited=cfg.allow_jump_to_visited,
            show_skipped=cfg.show_skipped_steps,
        )

        self._active_id: Optional[str] = None
        self._completed: frozenset[str] = frozenset()
        self._skipped: frozenset[str] = frozenset()
        self._flow: Optional[FocusFlow] = None
        self._steps: List[StepIndicatorData] = []
        self._pointer_log: Deque[PointerInteraction] = deque(maxlen=cfg.pointer_interaction_capacity)
        self._errors: Deque[ErrorRecord] = deque(maxlen=cfg.error_capacity)

        self._generation = 0
        self._in_flight: Optional[str] = None
        self._tasks: Set["asyncio.Task[Any]"] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._enabled = cfg.enabled
        self._disposed = False
        if cfg.debug:
            self.set_debug(True)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, element: FocusableElement) -> FocusableElement:
        """Register an element on mount. Raises ``RegistrationError`` on a duplicate id."""
        self._ensure_alive()
        stored = self._registry.register(element)
        self._bus.publish(FocusEvent.ELEMENT_REGISTERED, {"element_id": stored.id, "scope_id": stored.scope_id})
        self._refresh_steps()
        return stored

    def unregister(self, element_id: str) -> bool:
        if not self._registry.unregister(element_id):
            return False
        if self._active_id == element_id:
            self._set_active(None)
        self._bus.publish(FocusEvent.ELEMENT_UNREGISTERED, {"element_id": element_id})
        self._refresh_steps()
        return True

    def update(self, element_id: str, **changes: Any) -> bool:
        """Merge ``changes`` into a registered element; False when it is unknown."""
        updated = self._registry.update(element_id, **changes)
        if updated is None:
            logger.debug("update ignored: %s is not registered", element_id)
            return False
        if element_id == self._active_id and updated.scope_id != self._scopes.top.id:
            self._set_active(None)
        self._bus.publish(FocusEvent.ELEMENT_UPDATED, {"element_id": element_id, "fields": sorted(changes)})
        self._refresh_steps()
        return True

    def get_element(self, element_id: str) -> Optional[FocusableElement]:
        return self._registry.get(element_id)

    def get_elements_in_scope(self, scope_id: Optional[str] = None) -> List[FocusableElement]:
        return self._registry.get_elements_in_scope(scope_id or self._scopes.top.id)

    def can_focus_element(self, element_id: str) -> bool:
        element = self._registry.get(element_id)
        return element is not None and not element.skip_in_navigation and self._reachable(element)

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------
    def push_scope(self, scope: FocusScope, *, options: Optional[ModalOptions] = None) -> FocusScope:
        """Open a scope; the active element becomes the default restore target.

        Raises ``ScopeError`` when the id is already open.
        """
        self._ensure_alive()
        previous = self._active_id
        if scope.restore_focus_to is None:
            scope = dataclasses.replace(scope, restore_focus_to=previous)
        stored, entry = self._scopes.push(scope, previous, options)
        if previous is not None:
            self._set_active(None)
        else:
            self._generation += 1
        self._bus.publish(
            FocusEvent.SCOPE_PUSHED,
            {"scope_id": stored.id, "kind": stored.kind.value, "previous_focus_id": entry.previous_focus_id},
        )
        if stored.auto_activate_first:
            self._scheduler.schedule(lambda: self._auto_activate(stored.id))
        return stored

    def pop_scope(
        self,
        expected_scope_id: Optional[str] = None,
        *,
        reason: FocusChangeReason = FocusChangeReason.SCOPE_CLOSE,
    ) -> FocusScope:
        """Close the top scope and schedule restoration of the saved element.

        Raises ``ScopeError`` when only the default scope remains or when
        ``expected_scope_id`` does not match the top scope.
        """
        if expected_scope_id is not None and self._scopes.top.id != expected_scope_id:
            raise ScopeError(f"Top scope is '{self._scopes.top.id}', not '{expected_scope_id}'")
        scope, entry = self._scopes.pop()
        self._after_pop(scope)
        target = scope.restore_focus_to or entry.previous_focus_id
        if scope.restore_focus and target is not None:
            self._scheduler.schedule(lambda: self._restore(target, reason))
        return scope

    def open_modal(
        self,
        scope_id: str,
        *,
        close_on_escape: bool = True,
        close_on_outside_click: bool = True,
        prevent_scroll: bool = False,
        restore_focus_to: Optional[str] = None,
        on_close: Optional[Callable[[], None]] = None,
    ) -> FocusScope:
        scope = FocusScope(
            id=scope_id,
            kind=ScopeKind.MODAL,
            trap_focus=True,
            auto_activate_first=True,
            restore_focus_to=restore_focus_to,
            on_close=on_close,
        )
        options = ModalOptions(
            close_on_escape=close_on_escape,
            close_on_outside_click=close_on_outside_click,
            prevent_scroll=prevent_scroll,
        )
        return self.push_scope(scope, options=options)

    def close_modal(self, *, reason: FocusChangeReason = FocusChangeReason.SCOPE_CLOSE) -> bool:
        if self._disposed:
            return False
        if self._scopes.top.kind is not ScopeKind.MODAL:
            return False
        self.pop_scope(reason=reason)
        return True

    def is_modal_open(self) -> bool:
        return any(self._scopes.get(i).kind is ScopeKind.MODAL for i in self._scopes.ids())  # type: ignore[union-attr]

    @property
    def scroll_locked(self) -> bool:
        return any(e.options.prevent_scroll for e in self._scopes.entries())

    @property
    def current_scope(self) -> FocusScope:
        return self._scopes.top

    def scope_ids(self) -> List[str]:
        return self._scopes.ids()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    async def focus_next(self, options: Optional[NavigationOptions] = None) -> bool:
        return await self._step(+1, options or NavigationOptions(), "focus_next")

    async def focus_previous(self, options: Optional[NavigationOptions] = None) -> bool:
        return await self._step(-1, options or NavigationOptions(), "focus_previous")

    async def focus_first(self, options: Optional[NavigationOptions] = None) -> bool:
        return await self._edge(True, options or NavigationOptions(), "focus_first")

    async def focus_last(self, options: Optional[NavigationOptions] = None) -> bool:
        return await self._edge(False, options or NavigationOptions(), "focus_last")

    async def focus_field(
        self,
        element_id: str,
        reason: FocusChangeReason = FocusChangeReason.PROGRAMMATIC,
        *,
        skip_validation: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Jump directly to ``element_id``.

        Succeeds only if the element exists, is reachable from the current
        scope, the active element lets focus leave and the target accepts it.
        """
        if not self._begin("focus_field"):
            return False
        try:
            generation = self._generation
            target = self._registry.get(element_id)
            if target is None:
                self._no_target(f"focus_field: '{element_id}' is not registered")
                return False
            if not self._reachable(target):
                self._no_target(f"focus_field: '{element_id}' is isolated by scope '{self._scopes.top.id}'")
                return False
            source = self._active_element()
            if not skip_validation and target.id != self._active_id:
                if not await self._can_leave(source, target.id):
                    self._no_target(f"focus_field: '{self._active_id}' refused to release focus")
                    return False
                if not await self._pipeline.can_receive(target, self._active_id):
                    self._no_target(f"focus_field: '{element_id}' refused focus")
                    return False
            return self._commit(target, reason, generation, context)
        finally:
            self._in_flight = None

    async def can_jump_to_node(self, element_id: str, validator: Optional[Predicate] = None) -> bool:
        """Whether a pointer/step-indicator jump to ``element_id`` is allowed.

        Order: the caller's ``validator`` must pass; an element flag
        ``allow_direct_jump=True`` allows; otherwise the engine-wide
        ``allow_jump_to_any`` allows unless the element set the flag to
        False; a visited element allows in hybrid mode when jump-to-visited
        is on; finally every required, non-skipped predecessor in the same
        flow must be complete.
        """
        element = self._registry.get(element_id)
        if element is None:
            return False
        if not await self._pipeline.check(element_id, "jump_validator", validator, element_id):
            return False
        flag = element.mouse_navigation.allow_direct_jump
        if flag is True:
            return True
        if flag is None and self._settings.allow_jump_to_any:
            return True
        if (
            self._settings.allow_jump_to_visited
            and self._mode.mode is NavigationMode.HYBRID
            and self._history.was_visited(element_id)
        ):
            return True
        missing = [p for p in self._required_predecessors(element) if p not in self._completed]
        if missing:
            logger.debug("cannot jump to %s: required %s incomplete", element_id, missing)
            return False
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def undo_focus(self) -> bool:
        return self._replay(-1, "undo")

    def redo_focus(self) -> bool:
        return self._replay(1, "redo")

    def clear_history(self) -> None:
        self._history.clear()
        self._bus.publish(FocusEvent.HISTORY_CHANGED, {"index": -1, "length": 0})
        self._refresh_steps()

    def get_history(self) -> List[HistoryEntry]:
        return self._history.entries()

    @property
    def history_index(self) -> int:
        return self._history.index

    # ------------------------------------------------------------------
    # Input routing and navigation mode
    # ------------------------------------------------------------------
    async def handle_key(self, key: str, *, shift: bool = False) -> bool:
        """Route a key press. Returns True when the engine acted on it."""
        if self._disposed:
            return False
        self._mode.on_key(key)
        top = self._scopes.top
        entry = self._scopes.top_entry
        if key == "Escape" and entry is not None and top.kind is ScopeKind.MODAL:
            if entry.options.close_on_escape:
                self.pop_scope(reason=FocusChangeReason.ESCAPE)
                return True
            return False
        if key == "Tab" and top.trap_focus:
            return await (self.focus_previous() if shift else self.focus_next())
        return False

    def handle_pointer_move(self, x: float, y: float) -> bool:
        return self._mode.on_pointer_move(x, y)

    def handle_outside_click(self) -> bool:
        if self._disposed:
            return False
        entry = self._scopes.top_entry
        if entry is None or self._scopes.top.kind is not ScopeKind.MODAL:
            return False
        if not entry.options.close_on_outside_click:
            return False
        self.pop_scope()
        return True

    async def handle_pointer_navigation(self, element_id: str, x: float = 0.0, y: float = 0.0) -> bool:
        """Handle a click on a navigable element.

        Returns False (and publishes ``INVALID_JUMP``) when the jump is not
        allowed. Elements with ``preserve_flow_on_interaction`` accept the
        click without moving the active element.
        """
        element = self._registry.get(element_id)
        if element is None:
            logger.debug("pointer navigation ignored: %s is not registered", element_id)
            return False
        self._mode.on_click(navigable=True)
        allowed = await self.can_jump_to_node(element_id)
        self._pointer_log.append(
            PointerInteraction(element_id=element_id, timestamp=self._clock(), position=(x, y), was_valid=allowed)
        )
        if not allowed:
            self._bus.publish(FocusEvent.INVALID_JUMP, {"element_id": element_id, "reason": "validation_failed"})
            return False
        nav = element.mouse_navigation
        if nav.preserve_flow_on_interaction:
            return True
        moved = await self.focus_field(element_id, FocusChangeReason.POINTER)
        if moved and nav.click_advances is ClickAdvance.NEXT:
            self._scheduler.schedule(lambda: self._deferred(self.focus_next()))
        elif moved and nav.click_advances is ClickAdvance.SPECIFIC and nav.click_advances_to:
            to = nav.click_advances_to
            self._scheduler.schedule(lambda: self._deferred(self.focus_field(to, FocusChangeReason.POINTER)))
        return moved

    async def handle_step_click(self, element_id: str, validator: Optional[Predicate] = None) -> bool:
        """Step-indicator click: switch to hybrid mode and jump if the step allows it."""
        self._mode.set_mode(NavigationMode.HYBRID)
        step = next((s for s in self._steps if s.id == element_id), None)
        if step is None or step.status is StepStatus.DISABLED:
            logger.debug("step click ignored: %s is not an enabled step", element_id)
            return False
        if validator is not None and not await self._pipeline.check(element_id, "step_validator", validator, element_id):
            return False
        if not step.is_clickable and not await self.can_jump_to_node(element_id):
            self._bus.publish(FocusEvent.INVALID_JUMP, {"element_id": element_id, "reason": "step_locked"})
            return False
        return await self.focus_field(element_id, FocusChangeReason.POINTER)

    @property
    def navigation_mode(self) -> NavigationMode:
        return self._mode.mode

    def set_navigation_mode(self, mode: NavigationMode) -> None:
        self._mode.set_mode(mode)

    def settle_navigation_mode(self, now: Optional[float] = None) -> bool:
        """Collapse hybrid mode; ``now`` is read on the engine clock."""
        return self._mode.settle(now)

    @property
    def mode_classifier(self) -> ModeClassifier:
        return self._mode

    def pointer_interactions(self) -> List[PointerInteraction]:
        return list(self._pointer_log)

    # ------------------------------------------------------------------
    # Step projection
    # ------------------------------------------------------------------
    def set_completion_state(
        self,
        completed: Optional[Iterable[str]] = None,
        skipped: Optional[Iterable[str]] = None,
    ) -> None:
        """Replace the caller-owned completed / skipped sets (None keeps the current one)."""
        if completed is not None:
            self._completed = frozenset(completed)
        if skipped is not None:
            self._skipped = frozenset(skipped)
        self._refresh_steps()

    def set_flow(self, flow: Optional[FocusFlow]) -> None:
        self._flow = flow
        self._refresh_steps()

    def get_visible_steps(self) -> List[StepIndicatorData]:
        return list(self._steps)

    @property
    def completed(self) -> AbstractSet[str]:
        return self._completed

    @property
    def skipped(self) -> AbstractSet[str]:
        return self._skipped

    # ------------------------------------------------------------------
    # Observation, lifecycle, diagnostics
    # ------------------------------------------------------------------
    def subscribe(self, name: str | FocusEvent, handler: EventHandler, *, once: bool = False) -> Subscription:
        return self._bus.subscribe(name, handler, once=once)

    def unsubscribe(self, sub: Subscription) -> None:
        self._bus.unsubscribe(sub)

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def active_element_id(self) -> Optional[str]:
        return self._active_id

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def is_enabled(self) -> bool:
        return self._enabled and not self._disposed

    @property
    def is_navigating(self) -> bool:
        return self._in_flight is not None

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        logger.debug("focus management %s", "enabled" if enabled else "disabled")

    def set_debug(self, debug: bool) -> None:
        self._settings.debug = debug
        logging.getLogger("focusnav").setLevel(logging.DEBUG if debug else logging.NOTSET)

    def snapshot(self) -> EngineSnapshot:
        return EngineSnapshot(
            active_element_id=self._active_id,
            scope_ids=tuple(self._scopes.ids()),
            navigation_mode=self._mode.mode,
            history_index=self._history.index,
            history_length=len(self._history),
            steps=tuple(self._steps),
        )

    @property
    def errors(self) -> List[ErrorRecord]:
        return list(self._errors)

    def clear_errors(self) -> None:
        self._errors.clear()

    def submit(self, coro: Awaitable[Any]) -> None:
        """Start ``coro`` without waiting for it to finish.

        On a running loop it becomes a task there. Otherwise it is parked on
        an engine-owned loop that ``pump`` advances without blocking, so a
        validator that has not answered yet leaves only that navigation
        pending and the caller returns.
        """
        if self._disposed:
            coro.close()  # type: ignore[attr-defined]
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._track(self._parking_loop().create_task(coro))  # type: ignore[arg-type]
            if self.pump():
                wake = getattr(self._scheduler, "wake", None)
                if wake is not None:
                    wake(self.pump)
            return
        self._track(loop.create_task(coro))  # type: ignore[arg-type]

    def pump(self) -> int:
        """Advance parked activations; never waits on timers or I/O. Returns how many remain."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return 0
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            for _ in range(_PUMP_ITERATIONS):
                if not self.parked():
                    break
                loop.call_soon(loop.stop)
                loop.run_forever()
            self._tasks.difference_update([t for t in self._tasks if t.done()])
        return self.parked()

    def parked(self) -> int:
        """Number of activations waiting on the engine-owned loop."""
        loop = self._loop
        return sum(1 for t in self._tasks if t.get_loop() is loop and not t.done())

    async def wait_idle(self) -> None:
        """Await every deferred activation ``submit`` started on the running loop."""
        loop = asyncio.get_running_loop()
        while True:
            pending = [t for t in self._tasks if t.get_loop() is loop]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def dispose(self) -> None:
        """Tear down: clear all maps, empty the scope stack, cancel pending work."""
        if self._disposed:
            return
        for task in list(self._tasks):
            task.cancel()
        self.pump()
        self._tasks.clear()
        if self._loop is not None and not self._loop.is_running():
            self._loop.close()
        self._registry.clear()
        self._scopes.clear()
        self._history.clear()
        self._pointer_log.clear()
        self._steps = []
        self._active_id = None
        self._generation += 1
        self._disposed = True
        self._bus.publish(FocusEvent.ENGINE_DISPOSED, None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_alive(self) -> None:
        if self._disposed:
            raise ScopeError("Engine has been disposed")

    def _begin(self, operation: str) -> bool:
        if self._disposed or not self._enabled:
            logger.debug("%s refused: engine %s", operation, "disposed" if self._disposed else "disabled")
            return False
        if self._in_flight is not None:
            self._record_error(NavigationError(f"{operation} dropped: {self._in_flight} still validating"), logging.INFO)
            self._bus.publish(FocusEvent.NAVIGATION_DROPPED, {"operation": operation, "in_flight": self._in_flight})
            return False
        self._in_flight = operation
        return True

    async def _step(self, direction: int, options: NavigationOptions, operation: str) -> bool:
        if not self._begin(operation):
            return False
        try:
            generation = self._generation
            source = self._active_element()
            target = await self._navigator.step(direction, source, options, self._settings.default_wrap)
            if target is None:
                self._no_target(f"{operation}: no eligible element after '{self._active_id}'")
                return False
            if not options.skip_validation and not await self._can_leave(source, target.id):
                self._no_target(f"{operation}: '{self._active_id}' refused to release focus")
                return False
            return self._commit(target, FocusChangeReason.KEYBOARD, generation)
        finally:
            self._in_flight = None

    async def _edge(
        self,
        first: bool,
        options: NavigationOptions,
        operation: str,
        reason: FocusChangeReason = FocusChangeReason.PROGRAMMATIC,
    ) -> bool:
        if not self._begin(operation):
            return False
        try:
            generation = self._generation
            source = self._active_element()
            target = await self._navigator.edge(first, source, options)
            if target is None:
                self._no_target(f"{operation}: no eligible element")
                return False
            if (
                not options.skip_validation
                and target.id != self._active_id
                and not await self._can_leave(source, target.id)
            ):
                self._no_target(f"{operation}: '{self._active_id}' refused to release focus")
                return False
            return self._commit(target, reason, generation)
        finally:
            self._in_flight = None

    def _commit(
        self,
        target: FocusableElement,
        reason: FocusChangeReason,
        generation: int,
        context: Optional[Dict[str, Any]] = None,
    ) -> bool:
        if generation != self._generation:
            self._record_error(
                NavigationError(f"discarded stale transition to '{target.id}' (state changed while validating)"),
                logging.INFO,
            )
            return False
        if self._registry.get(target.id) is None or not self._reachable(target):
            self._no_target(f"'{target.id}' vanished while validating")
            return False
        if not self._activate(target):
            return False
        if target.id == self._active_id:
            return True
        previous = self._active_id
        self._collapse_to(target.scope_id)
        self._history.append(
            HistoryEntry(
                element_id=target.id,
                scope_id=target.scope_id,
                reason=reason,
                timestamp=self._clock(),
                previous_element_id=previous,
                context=dict(context or {}),
            )
        )
        self._set_active(target.id, reason)
        self._bus.publish(FocusEvent.HISTORY_CHANGED, {"index": self._history.index, "length": len(self._history)})
        self._refresh_steps()
        return True

    def _replay(self, step: int, label: str) -> bool:
        if self._disposed or not self._enabled or self._in_flight is not None:
            logger.info("%s_focus refused while %s", label, self._in_flight or "inactive")
            return False
        unreachable: List[str] = []

        def usable(entry: HistoryEntry) -> bool:
            element = self._registry.get(entry.element_id)
            if element is None or not self._reachable(element):
                unreachable.append(entry.element_id)
                return False
            return True

        found = self._history.find(step, usable)
        if found is None:
            if unreachable:
                self._record_error(ActivationError(unreachable[0], f"{label} target is no longer reachable"))
            return False
        if unreachable:
            logger.debug("%s stepped past unreachable entries: %s", label, ", ".join(unreachable))
        index, entry = found
        element = self._registry.get(entry.element_id)
        if not self._activate(element):  # type: ignore[arg-type]
            return False
        self._history.move_to(index)
        self._collapse_to(entry.scope_id)
        self._set_active(entry.element_id, FocusChangeReason.PROGRAMMATIC, replay=label)
        self._bus.publish(FocusEvent.HISTORY_CHANGED, {"index": self._history.index, "length": len(self._history)})
        self._refresh_steps()
        return True

    async def _can_leave(self, source: Optional[FocusableElement], target_id: str) -> bool:
        if not await self._pipeline.can_leave(source, target_id):
            return False
        node = self._flow.node(source.id) if self._flow is not None and source is not None else None
        if node is None or node.validate_on_leave is None:
            return True
        check = self._flow.validators.get(node.validate_on_leave)  # type: ignore[union-attr]
        if check is None:
            return True
        return await self._pipeline.check(node.id, node.validate_on_leave, lambda _target: check(), target_id)

    def _activate(self, element: FocusableElement) -> bool:
        if element.activate is None:
            return True
        try:
            element.activate()
        except Exception as exc:  # noqa: BLE001 - activation callbacks belong to the UI layer
            self._record_error(ActivationError(element.id, "activation callback raised", exc))
            return False
        return True

    def _restore(self, element_id: str, reason: FocusChangeReason) -> None:
        if self._disposed:
            return
        if self._registry.get(element_id) is None:
            logger.debug("restore skipped: %s is no longer registered", element_id)
            return
        self._deferred(self.focus_field(element_id, reason))

    def _auto_activate(self, scope_id: str) -> None:
        if self._disposed or not self._scopes.is_open(scope_id):
            logger.debug("auto-activation skipped: scope %s already closed", scope_id)
            return
        opts = NavigationOptions(scope_id=scope_id)
        self._deferred(self._edge(True, opts, "auto_activate", FocusChangeReason.SCOPE_OPEN))

    def _parking_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _track(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _deferred(self, coro: Awaitable[bool]) -> None:
        if self._disposed:
            coro.close()  # type: ignore[attr-defined]
            return
        self.submit(coro)

    def _after_pop(self, scope: FocusScope) -> None:
        active = self._active_element()
        if active is not None and active.scope_id == scope.id:
            self._set_active(None)
        else:
            self._generation += 1
        if scope.on_close is not None:
            try:
                scope.on_close()
            except Exception as exc:  # noqa: BLE001 - caller callback
                self._record_error(ActivationError(scope.id, "scope on_close callback raised", exc))
        self._bus.publish(FocusEvent.SCOPE_POPPED, {"scope_id": scope.id, "kind": scope.kind.value})

    def _collapse_to(self, scope_id: str) -> None:
        """Close non-trapping scopes stacked above ``scope_id`` (no restoration)."""
        for _ in self._scopes.scopes_above(scope_id):
            scope, _entry = self._scopes.pop()
            self._after_pop(scope)

    def _reachable(self, element: FocusableElement) -> bool:
        if element.scope_id == self._scopes.top.id:
            return True
        if not self._scopes.is_open(element.scope_id):
            return False
        return not any(s.trap_focus for s in self._scopes.scopes_above(element.scope_id))

    def _required_predecessors(self, element: FocusableElement) -> List[str]:
        flow = self._flow
        node = flow.node(element.id) if flow is not None else None
        if flow is not None and node is not None:
            return [
                n.id
                for n in flow.nodes
                if n.order < node.order
                and n.required
                and n.id in self._registry
                and n.id not in self._skipped
                and not flow.is_bypassed(n)
            ]
        return [
            e.id
            for e in self._registry.get_elements_in_scope(element.scope_id)
            if e.order < element.order and e.required and not e.skip_in_navigation and e.id not in self._skipped
        ]

    def _active_element(self) -> Optional[FocusableElement]:
        return self._registry.get(self._active_id) if self._active_id is not None else None

    def _set_active(self, element_id: Optional[str], reason: Optional[FocusChangeReason] = None, **extra: Any) -> None:
        previous = self._active_id
        self._active_id = element_id
        self._generation += 1
        payload = {"element_id": element_id, "previous_element_id": previous, "reason": reason.value if reason else None}
        payload.update(extra)
        self._bus.publish(FocusEvent.FOCUS_CHANGED, payload)
        if element_id is None:
            self._refresh_steps()

    def _refresh_steps(self) -> None:
        if self._disposed:
            return
        steps = self._projector.project(
            self._registry,
            self._active_id,
            self._completed,
            self._skipped,
            self._history.visited_ids(),
            self._flow,
        )
        if steps != self._steps:
            self._steps = steps
            self._bus.publish(FocusEvent.STEPS_UPDATED, {"steps": [s.id for s in steps]})

    def _no_target(self, message: str) -> None:
        self._record_error(NavigationError(message), logging.DEBUG)

    def _record_error(self, error: FocusError, level: int = logging.WARNING) -> None:
        record = self._error_record(error)
        logger.log(level, "%s", record.summary())
        self._keep_error(record)

    def _store_error(self, error: FocusError) -> None:
        self._keep_error(self._error_record(error))

    def _error_record(self, error: FocusError) -> ErrorRecord:
        return ErrorRecord(error=error, timestamp=self._clock(), element_id=getattr(error, "element_id", None))

    def _keep_error(self, record: ErrorRecord) -> None:
        self._errors.append(record)
        self._bus.publish(
            FocusEvent.ERROR_OCCURRED,
            {"kind": record.kind, "message": str(record.error), "element_id": record.element_id},
        )

    def _on_mode_change(self, old: NavigationMode, new: NavigationMode) -> None:
        self._bus.publish(FocusEvent.MODE_CHANGED, {"previous": old.value, "mode": new.value})
