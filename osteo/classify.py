# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from .cascade import Cascade, Rule, always
from .context import EvaluationContext
from .profile import T_33_TO_25, DerivedFlags, PatientProfile, derive_flags, has_other_major_risk
from .rules import DEFAULT_RULES, rule_value

RISK_VERY_HIGH = "Very High"
RISK_HIGH = "High"
RISK_LOW = "Low"
RISK_UNKNOWN = "Unknown"  # terminal: BMD not measured and no fracture history

AH_CASE_1 = "case_1"  # osteopenia, no further risk         -> goal T >= -2.0
AH_CASE_2 = "case_2"  # osteopenia + FRAX / parental hip fx -> goal T >= -1.5


def classify_antihormonal(
    p: PatientProfile,
    flags: Optional[DerivedFlags] = None,
    rules: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """
    Osteopenia sub-cases under antihormonal therapy (breast/prostate cancer).

    Returns AH_CASE_1 / AH_CASE_2, or None when the patient is not on
    antihormonal therapy or does not fit either case (fracture of any kind
    incl. recent/severe vertebral, or another major risk factor).
    """
    if not p.risk_antihormonal:
        return None
    flags = flags or derive_flags(p, rules)
    if flags.is_osteopenia and not flags.has_fracture_extended and not has_other_major_risk(p):
        if p.risk_frax or p.risk_parent_hip_fx:
            return AH_CASE_2
        return AH_CASE_1
    return None


def antihormonal_goal_t(case: str, rules: Optional[Dict[str, Any]] = None) -> str:
    return str(rule_value(rules or DEFAULT_RULES, "antihormonal", "goal_t", case))


def is_unknown_terminal(flags: DerivedFlags) -> bool:
    return flags.is_bmd_unknown and not flags.has_fracture_history


def _early_menopause(ctx: EvaluationContext) -> str:
    return RISK_VERY_HIGH if ctx.flags.is_osteoporosis else RISK_HIGH


# Order is the contract: first match wins.
RISK_CASCADE: Cascade[str] = Cascade("risk", [
    # --- very high ---
    Rule("R01", "T < -3.3",
         lambda c: c.flags.is_severe_osteoporosis,
         lambda c: RISK_VERY_HIGH),
    Rule("R02", "schwere Wirbelkörperfraktur (klinisch oder morphometrisch)",
         lambda c: c.profile.fx_vertebral_severe or c.profile.fx_morphological_severe,
         lambda c: RISK_VERY_HIGH),
    Rule("R03", "Fragilitätsfraktur + Osteoporose",
         lambda c: c.flags.has_fracture_history and c.flags.is_osteoporosis,
         lambda c: RISK_VERY_HIGH),
    Rule("R04", "Hauptfraktur oder Fraktur < 24 Monate + Osteopenie",
         lambda c: (c.profile.fx_severe or c.profile.fx_recent_24m) and c.flags.is_osteopenia,
         lambda c: RISK_VERY_HIGH),
    Rule("R05", "Hochrisikofaktor + (Fraktur oder Osteoporose)",
         lambda c: c.flags.has_high_risk_factor and (c.flags.has_fracture_history or c.flags.is_osteoporosis),
         lambda c: RISK_VERY_HIGH),
    Rule("R06", "GIO-Algorithmus greift",
         lambda c: c.gio is not None,
         lambda c: RISK_VERY_HIGH),
    Rule("R07", "frühe Menopause (40-44 Jahre)",
         lambda c: c.flags.is_early_menopause_rule,
         _early_menopause),
    # --- high ---
    Rule("R08", "antihormonelle Therapie, Sonderfall Osteopenie",
         lambda c: c.antihormonal_case is not None,
         lambda c: RISK_HIGH),
    Rule("R09", "Hochrisikofaktor",
         lambda c: c.flags.has_high_risk_factor,
         lambda c: RISK_HIGH),
    Rule("R10", "Fragilitätsfraktur",
         lambda c: c.flags.has_fracture_history,
         lambda c: RISK_HIGH),
    Rule("R11", "-3.3 <= T < -2.5",
         lambda c: c.profile.t_group == T_33_TO_25,
         lambda c: RISK_HIGH),
], default=Rule("R12", "kein Kriterium erfüllt", always, lambda c: RISK_LOW))


def classify_risk(ctx: EvaluationContext) -> Tuple[str, str]:
    """(rule_id, risk tier). The Unknown terminal state is checked by the caller."""
    return RISK_CASCADE.evaluate(ctx)
