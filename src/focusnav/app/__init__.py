"""Composition root helpers."""

from .bootstrap import EngineContext, create_engine  # noqa: F401

__all__ = ["EngineContext", "create_engine"]
