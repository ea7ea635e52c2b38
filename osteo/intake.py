# -*- coding: utf-8 -*-
"""
Form state -> PatientProfile.

The web form delivers a flat dict of raw widget values (strings, bools, None).
All coercions and the dependent-field resets of the form live here, so the
decision core only ever sees a consistent profile.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .profile import (
    CKD_STAGES,
    CKD_UNKNOWN,
    DOSE_5_TO_75,
    DOSE_GE_75,
    MENOPAUSE_NO,
    MENOPAUSE_PREGNANCY,
    MENOPAUSE_YES,
    SEX_FEMALE,
    SEX_MALE,
    STEROID_DOSES,
    T_GROUPS,
    T_UNKNOWN,
    PatientProfile,
)
from .rules import DEFAULT_RULES, rule_value
from .util import ValidationReport, to_bool, to_int

# pregnancy is offered for women up to this age
PREGNANCY_MAX_AGE = 50
# menopause "no"/"pregnancy" from this age on is flagged as implausible
MENOPAUSE_PLAUSIBLE_FROM = 60

RISK_FLAGS = (
    "risk_parent_hip_fx",
    "risk_frax",
    "risk_diabetes",
    "risk_ckd",
    "risk_antihormonal",
    "risk_copd",
)
SAFETY_FLAGS = (
    "cv_event_recent_12m",
    "hypocalcemia_risk",
    "hypercalcemia",
    "contraindication_pth",
)


def _choice(value: Any, allowed: tuple, default: str) -> str:
    s = str(value).strip() if value is not None else ""
    return s if s in allowed else default


def parse_age(value: Any, rules: Optional[Dict[str, Any]] = None) -> int:
    floor = rule_value(rules or DEFAULT_RULES, "age", "floor")
    age = to_int(value)
    if age is None or age < floor:
        return floor
    return age


def normalize_menopause(sex: str, age: int, menopause: Any) -> str:
    if sex == SEX_MALE:
        return MENOPAUSE_NO
    status = _choice(menopause, (MENOPAUSE_NO, MENOPAUSE_YES, MENOPAUSE_PREGNANCY), MENOPAUSE_NO)
    if status == MENOPAUSE_PREGNANCY and age > PREGNANCY_MAX_AGE:
        return MENOPAUSE_YES
    return status


def assemble_profile(ui: Dict[str, Any], rules: Optional[Dict[str, Any]] = None) -> PatientProfile:
    rules = rules or DEFAULT_RULES
    sex = _choice(ui.get("sex"), (SEX_MALE, SEX_FEMALE), SEX_FEMALE)
    age = parse_age(ui.get("age"), rules)
    menopause = normalize_menopause(sex, age, ui.get("menopause"))

    # sub-checkboxes only count while their parent is ticked
    fx_any = to_bool(ui.get("fx_any"))
    fx_severe = fx_any and to_bool(ui.get("fx_severe"))
    fx_morphological = to_bool(ui.get("fx_morphological"))

    # "steroid" is the section checkbox; current use and dose live below it
    steroid = to_bool(ui.get("steroid"))
    steroid_current = steroid and to_bool(ui.get("steroid_current"))
    dose = ui.get("steroid_dose") if steroid else None
    steroid_dose = dose if dose in STEROID_DOSES else None

    early_menopause_lt = rule_value(rules, "age", "early_menopause_lt")
    frax_early_menopause = to_bool(ui.get("frax_early_menopause")) or (
        sex == SEX_FEMALE and menopause == MENOPAUSE_YES and age < early_menopause_lt
    )

    kwargs: Dict[str, Any] = {k: to_bool(ui.get(k)) for k in RISK_FLAGS + SAFETY_FLAGS}
    return PatientProfile(
        sex=sex,
        age=age,
        menopause=menopause,
        t_group=_choice(ui.get("t_group"), T_GROUPS, T_UNKNOWN),
        ckd_stage=_choice(ui.get("ckd_stage"), CKD_STAGES, CKD_UNKNOWN),
        fx_any=fx_any,
        fx_severe=fx_severe,
        fx_vertebral_severe=fx_severe and to_bool(ui.get("fx_vertebral_severe")),
        fx_recent_24m=fx_any and to_bool(ui.get("fx_recent_24m")),
        fx_morphological=fx_morphological,
        fx_morphological_severe=fx_morphological and to_bool(ui.get("fx_morphological_severe")),
        risk_steroid=steroid and steroid_dose in (DOSE_5_TO_75, DOSE_GE_75),
        frax_early_menopause=frax_early_menopause,
        steroid_current=steroid_current,
        steroid_dose=steroid_dose,
        injectable=True if ui.get("injectable") is None else to_bool(ui.get("injectable")),
        **kwargs,
    )


def has_minimum_input(ui: Dict[str, Any]) -> bool:
    """Results are shown once a BMD band, a CKD stage or a fracture was entered."""
    return bool(
        (ui.get("t_group") or "")
        or (ui.get("ckd_stage") or "")
        or to_bool(ui.get("fx_any"))
        or to_bool(ui.get("fx_morphological"))
    )


def check_inputs(ui: Dict[str, Any]) -> ValidationReport:
    missing: List[str] = []
    warnings: List[str] = []

    if not ui.get("t_group"):
        missing.append("Knochendichte (niedrigster T-Score)")
    elif ui.get("t_group") not in T_GROUPS:
        warnings.append(f"Unbekannte T-Score-Gruppe '{ui.get('t_group')}', wird als 'nicht gemessen' gewertet.")
    if not ui.get("ckd_stage"):
        missing.append("CKD-Stadium (eGFR)")
    elif ui.get("ckd_stage") not in CKD_STAGES:
        warnings.append(f"Unbekanntes CKD-Stadium '{ui.get('ckd_stage')}', wird als 'unbekannt' gewertet.")

    sex = _choice(ui.get("sex"), (SEX_MALE, SEX_FEMALE), SEX_FEMALE)
    age = to_int(ui.get("age"))
    if age is None:
        missing.append("Alter")
    if sex == SEX_FEMALE and age is not None and age >= MENOPAUSE_PLAUSIBLE_FROM:
        if ui.get("menopause") in (MENOPAUSE_NO, MENOPAUSE_PREGNANCY):
            warnings.append(f"Menopausenstatus bei Alter {age} J. bitte prüfen (\"nein\"/Schwangerschaft unplausibel).")

    return ValidationReport(missing=missing, warnings=warnings)
