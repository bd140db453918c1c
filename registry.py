"""
Plugin registry for promotions.

Triggers, actions, qualifiers, enhancers and combination filters are
registered under string keys. Keys are validated when a plugin registers,
lookups of unknown keys return None so a promotion referencing a plugin that
is not installed is skipped instead of failing checkout.
"""
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional


@dataclass
class RegisteredAction:
    key: str
    handler: Callable
    cleanup: Optional[Callable] = None


@dataclass
class CombinationFilter:
    name: str
    handler: Callable


async def maybe_await(value: Any) -> Any:
    """Plugins may be plain or async functions."""
    if inspect.isawaitable(value):
        return await value
    return value


def _check_plugin(kind: str, key: str, handler: Callable) -> None:
    if not isinstance(key, str) or not key.strip():
        raise ValueError(f"{kind} key must be a non-empty string")
    if not callable(handler):
        raise ValueError(f"{kind} '{key}' handler must be callable")


class PromotionRegistry:
    def __init__(self) -> None:
        self.triggers: Dict[str, Callable] = {}
        self.actions: Dict[str, RegisteredAction] = {}
        self.qualifiers: List[Callable] = []
        self.enhancers: List[Callable] = []
        self.combination_filters: List[CombinationFilter] = []

    def register_trigger(self, key: str, handler: Callable) -> None:
        _check_plugin("Trigger", key, handler)
        if key in self.triggers:
            raise ValueError(f"Trigger '{key}' is already registered")
        self.triggers[key] = handler

    def register_action(self, key: str, handler: Callable, cleanup: Optional[Callable] = None) -> None:
        _check_plugin("Action", key, handler)
        if key in self.actions:
            raise ValueError(f"Action '{key}' is already registered")
        if cleanup is not None and not callable(cleanup):
            raise ValueError(f"Action '{key}' cleanup must be callable")
        self.actions[key] = RegisteredAction(key, handler, cleanup)

    def register_qualifier(self, handler: Callable) -> None:
        _check_plugin("Qualifier", getattr(handler, "__name__", "qualifier"), handler)
        self.qualifiers.append(handler)

    def register_enhancer(self, handler: Callable) -> None:
        _check_plugin("Enhancer", getattr(handler, "__name__", "enhancer"), handler)
        self.enhancers.append(handler)

    def register_combination_filter(self, name: str, handler: Callable) -> None:
        _check_plugin("Combination filter", name, handler)
        self.combination_filters.append(CombinationFilter(name, handler))

    def get_trigger(self, key: str) -> Optional[Callable]:
        return self.triggers.get(key)

    def get_action(self, key: str) -> Optional[RegisteredAction]:
        return self.actions.get(key)
