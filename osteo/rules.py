# -*- coding: utf-8 -*-
"""
Default cut-offs for the decision rules.

The rule modules never hard-code ages; they read them from a nested dict of the
shape below. A local YAML file can patch single values (deep merge), e.g.

    schema_version: 1
    age:
      serm_note_ge: 75
"""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

RULES_SCHEMA_VERSION = 1

DEFAULT_RULES: Dict[str, Any] = {
    "age": {
        # the form clamps every age below this value to it
        "floor": 40,
        # early menopause rule: floor <= age < 45
        "early_menopause_lt": 45,
        # early postmenopause special cases start here
        "menopause_window_from": 45,
        "postmenopause_early_lt": 50,
        "postmenopause_severe_lt": 55,
        # menopausal transition (inclusive upper bound)
        "transition_le": 55,
        # SERM wording / second-line suppression in the high-risk branch
        "serm_note_ge": 76,
    },
    # Glucocorticoid-induced osteoporosis (prevention algorithm age bands)
    "gio": {
        "adult_ge": 50,
        "senior_ge": 65,
    },
    "antihormonal": {
        # T-score goal per osteopenia sub-case; shared by treatment note and goal text
        "goal_t": {
            "case_1": "-2.0",
            "case_2": "-1.5",
        },
    },
}


def rule_value(rules: Dict[str, Any], *path: str) -> Any:
    """Look up a nested rule value, falling back to DEFAULT_RULES for missing keys."""
    cur: Any = rules
    for p in path:
        if not isinstance(cur, dict) or p not in cur:
            break
        cur = cur[p]
    else:
        return cur
    cur = DEFAULT_RULES
    for p in path:
        cur = cur[p]
    return cur


def deep_merge_dict(base: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursive merge:
    - dict + dict -> merge
    - otherwise the patch value wins
    """
    out = copy.deepcopy(base)
    for k, v in patch.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge_dict(out[k], v)
        else:
            out[k] = copy.deepcopy(v)
    return out


def load_rules(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    if path is None:
        return copy.deepcopy(DEFAULT_RULES)
    path = Path(path)
    if not path.exists():
        return copy.deepcopy(DEFAULT_RULES)
    with path.open("r", encoding="utf-8") as f:
        obj = yaml.safe_load(f) or {}
    if not isinstance(obj, dict):
        raise ValueError(f"{path.name}: YAML-Wurzel muss ein Mapping sein")
    ver = obj.pop("schema_version", None)
    if ver != RULES_SCHEMA_VERSION:
        raise ValueError(f"{path.name}: schema_version erwartet {RULES_SCHEMA_VERSION}, gefunden {ver}")
    return deep_merge_dict(DEFAULT_RULES, obj)
