# -*- coding: utf-8 -*-
"""
Decision core entry point.

    normalize -> classify risk -> select treatment -> determine goal -> warnings

`evaluate` is a pure function of the profile (and the optional rule cut-offs).
All sub-results that several cascades consult are computed once into an
EvaluationContext, so risk, treatment, goal and warnings always see the same
derived flags.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .classify import RISK_UNKNOWN, classify_antihormonal, classify_risk, is_unknown_terminal
from .context import EvaluationContext
from .gio import select_gio_regimen
from .goals import determine_goal
from .profile import PatientProfile, derive_flags
from .regimen import RegimenRecommendation
from .rules import DEFAULT_RULES
from .safety import generate_warnings
from .treatment import select_treatment
from .version import APP_VERSION, SCHEMA_VERSION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    risk: str
    treatment: Optional[RegimenRecommendation]
    goal: Optional[str]
    warnings: List[str] = field(default_factory=list)
    risk_rule: str = ""
    goal_rule: str = ""

    @property
    def is_unknown(self) -> bool:
        return self.risk == RISK_UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "app_version": APP_VERSION,
            "risk": self.risk,
            "risk_rule": self.risk_rule,
            "treatment": self.treatment.to_dict() if self.treatment is not None else None,
            "goal": self.goal,
            "goal_rule": self.goal_rule,
            "warnings": list(self.warnings),
        }


def build_context(profile: PatientProfile, rules: Optional[Dict[str, Any]] = None) -> EvaluationContext:
    rules = rules or DEFAULT_RULES
    flags = derive_flags(profile, rules)
    return EvaluationContext(
        profile=profile,
        flags=flags,
        rules=rules,
        gio=select_gio_regimen(profile, flags, rules),
        antihormonal_case=classify_antihormonal(profile, flags, rules),
    )


def evaluate(profile: PatientProfile, rules: Optional[Dict[str, Any]] = None) -> Evaluation:
    ctx = build_context(profile, rules)

    if is_unknown_terminal(ctx.flags):
        logger.info("BMD not measured and no fracture history: risk Unknown")
        return Evaluation(
            risk=RISK_UNKNOWN,
            treatment=None,
            goal=None,
            warnings=generate_warnings(profile, None),
            risk_rule="UNKNOWN",
        )

    risk_rule, risk = classify_risk(ctx)
    ctx = ctx.with_risk(risk)
    _, treatment = select_treatment(ctx)
    goal_rule, goal = determine_goal(ctx)
    warnings = generate_warnings(profile, treatment)

    logger.info(
        f"evaluation: risk={risk} ({risk_rule}) treatment={treatment.rule_id} "
        f"goal={goal_rule} warnings={len(warnings)}"
    )
    return Evaluation(
        risk=risk,
        treatment=treatment,
        goal=goal,
        warnings=warnings,
        risk_rule=risk_rule,
        goal_rule=goal_rule,
    )
