# -*- coding: utf-8 -*-
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional


def to_float(x: Any) -> Optional[float]:
    """Best-effort conversion. Returns None for empty/invalid."""
    if x is None:
        return None
    if isinstance(x, bool):
        return None
    if isinstance(x, (int, float)):
        v = float(x)
        if math.isnan(v) or math.isinf(v):
            return None
        return v
    s = str(x).strip().replace(",", ".")
    if not s:
        return None
    try:
        v = float(s)
    except ValueError:
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def to_int(x: Any) -> Optional[int]:
    f = to_float(x)
    if f is None:
        return None
    return int(f)


def to_bool(x: Any) -> bool:
    """Checkbox / radio coercion ("ja", "yes", "true", 1 -> True)."""
    if isinstance(x, bool):
        return x
    if x is None:
        return False
    if isinstance(x, (int, float)):
        return x != 0
    return str(x).strip().lower() in ("1", "true", "yes", "ja", "on", "x")


class SafeDict(dict):
    """Format-map helper that leaves unknown placeholders visible instead of raising."""

    def __missing__(self, key: str) -> str:  # type: ignore[override]
        return "{" + key + "}"


@dataclass(frozen=True)
class ValidationReport:
    missing: List[str]
    warnings: List[str]

    @property
    def ok(self) -> bool:
        return not self.missing and not self.warnings

    def to_markdown(self) -> str:
        lines: List[str] = []
        if self.missing:
            lines.append("### Fehlende Angaben")
            for m in self.missing:
                lines.append(f"- {m}")
        if self.warnings:
            lines.append("### Plausibilitäts-/Hinweis-Checks")
            for w in self.warnings:
                lines.append(f"- {w}")
        if not lines:
            return "—"
        return "\n".join(lines)
