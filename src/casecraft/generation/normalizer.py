"""
CaseCraft Action Normalizer

Reconciles field aliasing between descriptor dialects: older descriptors
and some model outputs name the selector field `locator`.
"""

from typing import Any, Iterable


def normalize_action(action: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of the action with a canonical `selector` field.

    A `locator` is copied into `selector` when no selector is present; a
    selector given as an object with a string `selector` key is flattened.
    Nothing else changes. Applying this twice equals applying it once.
    """
    normalized = dict(action)

    if normalized.get("locator") and not normalized.get("selector"):
        normalized["selector"] = normalized["locator"]

    selector = normalized.get("selector")
    if isinstance(selector, dict) and isinstance(selector.get("selector"), str):
        normalized["selector"] = selector["selector"]

    return normalized


def normalize_actions(actions: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    return [normalize_action(a) if isinstance(a, dict) else a for a in actions]
