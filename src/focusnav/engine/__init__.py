"""Focus engine core: registry, scopes, validation, navigation, history,
mode classification and step projection.

Import concrete modules directly (``focusnav.engine.models`` etc.); the
public facade is re-exported from ``focusnav``.
"""
