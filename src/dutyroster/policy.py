"""Rule on/off policy loader (YAML, strict).

Returns a mapping of rule name -> enabled (bool), as consumed by
``build_input(enabled_rules=...)`` and ``PlanningStore.set_enabled_rules``.

- The document must contain a top-level ``rules:`` mapping.
- Values under ``rules:`` must be booleans; anything else raises TypeError.
- Known rules missing from the file default to enabled (with a warning).
- Unknown keys are ignored (with a warning).
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Any, Dict

from yaml import safe_load

from dutyroster.rules.registry import list_rule_names


class PolicyWarning(UserWarning):
    pass


def normalize_policy(data: Any) -> Dict[str, bool]:
    known = list_rule_names()
    if not isinstance(data, dict) or not isinstance(data.get("rules"), dict):
        raise ValueError("Policy file must contain a top-level 'rules' mapping.")

    raw = data["rules"]
    for k in sorted(str(k) for k in raw if k not in known):
        warnings.warn(
            f"Ignoring unknown policy rule: '{k}'", PolicyWarning, stacklevel=2
        )

    enabled: Dict[str, bool] = {}
    for name in known:
        if name not in raw:
            enabled[name] = True
            warnings.warn(
                f"Policy does not specify rule '{name}'; defaulting to enabled",
                PolicyWarning,
                stacklevel=2,
            )
            continue
        val = raw[name]
        if not isinstance(val, bool):
            raise TypeError(
                f"Policy value for '{name}' must be a boolean, got {type(val).__name__}."
            )
        enabled[name] = val
    return enabled


def load_enabled_rules(path: str | Path | None) -> Dict[str, bool]:
    """Load the policy at ``path``; ``None`` enables every rule."""
    if path is None:
        return {name: True for name in list_rule_names()}
    text = Path(path).read_text(encoding="utf-8")
    return normalize_policy(safe_load(text) or {})
