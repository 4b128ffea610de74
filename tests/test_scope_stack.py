import pytest

from focusnav import FocusScope, ModalOptions, ScopeError
from focusnav.engine.scopes import ScopeStack


def test_default_scope_always_at_bottom():
    stack = ScopeStack()
    assert stack.ids() == ["default"]
    with pytest.raises(ScopeError):
        stack.pop()
    with pytest.raises(ScopeError):
        stack.push(FocusScope(id="default"), None)


def test_push_records_previous_focus_and_options():
    stack = ScopeStack(clock=lambda: 7.0)
    stored, entry = stack.push(FocusScope(id="dlg"), "field2", ModalOptions(prevent_scroll=True))
    assert stored.parent_scope_id == "default" and stored.created_at == 7.0
    assert entry.previous_focus_id == "field2" and entry.options.prevent_scroll
    assert stack.top_entry is entry
    scope, popped = stack.pop()
    assert scope.id == "dlg" and popped is entry


def test_navigable_chain_stops_at_trap():
    stack = ScopeStack()
    stack.push(FocusScope(id="modal", trap_focus=True), None)
    stack.push(FocusScope(id="menu"), None)
    stack.push(FocusScope(id="submenu"), None)
    assert stack.navigable_chain(False) == ["submenu"]
    assert stack.navigable_chain(True) == ["submenu", "menu", "modal"]
    assert [s.id for s in stack.scopes_above("modal")] == ["submenu", "menu"]


def test_trapping_top_never_extends():
    stack = ScopeStack()
    stack.push(FocusScope(id="modal", trap_focus=True), None)
    assert stack.navigable_chain(True) == ["modal"]


def test_cleared_stack_rejects_use():
    stack = ScopeStack()
    stack.clear()
    assert stack.ids() == []
    with pytest.raises(ScopeError):
        stack.top
    with pytest.raises(ScopeError):
        stack.push(FocusScope(id="x"), None)
    stack.reset()
    assert stack.ids() == ["default"]
