# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .gio import GIOResult
from .profile import DerivedFlags, PatientProfile


@dataclass(frozen=True)
class EvaluationContext:
    """
    One evaluation snapshot: the profile, its derived flags and the sub-algorithm
    results, computed once and shared by every cascade.
    """
    profile: PatientProfile
    flags: DerivedFlags
    rules: Dict[str, Any]
    gio: Optional[GIOResult]
    antihormonal_case: Optional[str]
    risk: Optional[str] = None

    def with_risk(self, risk: str) -> "EvaluationContext":
        return replace(self, risk=risk)
