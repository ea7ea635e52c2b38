# -*- coding: utf-8 -*-
"""
Patient profile and derived flags.

The profile is the only input of the decision core. It is assembled by the
form layer (see intake.py) and never mutated afterwards; everything the rules
need beyond the raw fields is computed once by `derive_flags`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .rules import DEFAULT_RULES, rule_value

# --- Categorical values ------------------------------------------------------

SEX_MALE = "male"
SEX_FEMALE = "female"

MENOPAUSE_NO = "no"
MENOPAUSE_YES = "yes"
MENOPAUSE_PREGNANCY = "pregnancy"

# BMD bands ("t_group"), T-score ranges of the lowest measured site
T_LT_33 = "lt_-3.3"
T_33_TO_25 = "between_-3.3_-2.5"
T_25_TO_10 = "between_-2.5_-1.0"
T_GE_10 = "ge_-1.0"
T_UNKNOWN = "unknown"
T_GROUPS = (T_LT_33, T_33_TO_25, T_25_TO_10, T_GE_10, T_UNKNOWN)

CKD_G1_2 = "g1_2"
CKD_G3 = "g3"
CKD_G4_5 = "g4_5"
CKD_UNKNOWN = "unknown"
CKD_STAGES = (CKD_G1_2, CKD_G3, CKD_G4_5, CKD_UNKNOWN)

# Prednisolone-equivalent daily dose
DOSE_LT_5 = "lt_5"
DOSE_5_TO_75 = "mid_5_to_7_5"
DOSE_GE_75 = "ge_7_5"
STEROID_DOSES = (DOSE_LT_5, DOSE_5_TO_75, DOSE_GE_75)


@dataclass(frozen=True)
class PatientProfile:
    sex: str = SEX_FEMALE
    age: int = 40
    menopause: str = MENOPAUSE_NO
    t_group: str = T_UNKNOWN
    ckd_stage: str = CKD_UNKNOWN

    # Fractures
    fx_any: bool = False
    fx_severe: bool = False             # clinical vertebral / proximal femur
    fx_vertebral_severe: bool = False   # severe clinical vertebral
    fx_recent_24m: bool = False
    fx_morphological: bool = False
    fx_morphological_severe: bool = False

    # Risk factors
    risk_steroid: bool = False          # current moderate/high glucocorticoid dose only
    risk_parent_hip_fx: bool = False
    risk_frax: bool = False
    risk_diabetes: bool = False
    risk_ckd: bool = False
    risk_antihormonal: bool = False
    risk_copd: bool = False
    frax_early_menopause: bool = False

    # Glucocorticoids
    steroid_current: bool = False
    steroid_dose: Optional[str] = None

    # Safety
    cv_event_recent_12m: bool = False
    hypocalcemia_risk: bool = False
    hypercalcemia: bool = False
    contraindication_pth: bool = False

    injectable: bool = True


@dataclass(frozen=True)
class DerivedFlags:
    # fx_any or fx_morphological (risk classification, goals, GIO)
    has_fracture_history: bool
    # adds fx_recent_24m / fx_vertebral_severe (antihormonal sub-cases)
    has_fracture_extended: bool
    # every fracture flag incl. fx_severe (treatment special cases)
    has_fracture_any_kind: bool
    has_high_risk_factor: bool
    is_osteoporosis: bool
    is_severe_osteoporosis: bool
    is_osteopenia: bool
    is_normal: bool
    is_bmd_unknown: bool
    is_early_menopause_rule: bool


def _ckd_advanced(p: PatientProfile) -> bool:
    return p.ckd_stage in (CKD_G3, CKD_G4_5)


def has_other_high_risk(p: PatientProfile) -> bool:
    """High-risk factors other than the glucocorticoid itself (GIO prevention branch)."""
    return (
        p.risk_parent_hip_fx
        or p.risk_frax
        or p.risk_diabetes
        or p.risk_ckd
        or p.risk_copd
        or _ckd_advanced(p)
    )


def has_other_major_risk(p: PatientProfile) -> bool:
    """Major risks that exclude the antihormonal osteopenia sub-cases (FRAX/parental hip not counted)."""
    return p.risk_diabetes or p.risk_ckd or p.risk_copd or p.risk_steroid or _ckd_advanced(p)


def derive_flags(p: PatientProfile, rules: Optional[Dict[str, Any]] = None) -> DerivedFlags:
    rules = rules or DEFAULT_RULES
    floor = rule_value(rules, "age", "floor")
    early_lt = rule_value(rules, "age", "early_menopause_lt")

    has_fracture_history = p.fx_any or p.fx_morphological
    return DerivedFlags(
        has_fracture_history=has_fracture_history,
        has_fracture_extended=has_fracture_history or p.fx_recent_24m or p.fx_vertebral_severe,
        has_fracture_any_kind=(
            has_fracture_history or p.fx_severe or p.fx_recent_24m or p.fx_vertebral_severe
        ),
        has_high_risk_factor=p.risk_steroid or has_other_high_risk(p),
        is_osteoporosis=p.t_group in (T_LT_33, T_33_TO_25),
        is_severe_osteoporosis=p.t_group == T_LT_33,
        is_osteopenia=p.t_group == T_25_TO_10,
        is_normal=p.t_group == T_GE_10,
        # anything outside the four measured bands counts as not measured
        is_bmd_unknown=p.t_group not in (T_LT_33, T_33_TO_25, T_25_TO_10, T_GE_10),
        is_early_menopause_rule=(
            floor <= p.age < early_lt
            and (p.frax_early_menopause or p.menopause == MENOPAUSE_YES)
        ),
    )
