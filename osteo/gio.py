# -*- coding: utf-8 -*-
"""
Glucocorticoid-induced osteoporosis (GIO) regimen selection.

Only patients currently on glucocorticoids are considered. The tree branches on
the prednisolone-equivalent dose, then on fracture history, BMD band and age:

    < 5 mg      fracture -> Prevention-2
                no fracture: >= 65 & BMD normal/osteopenia/unknown,
                             50-64 & osteopenia, or osteoporosis -> Prevention-1
    5-7.5 mg    fracture -> Prevention-2
                no fracture: < 50 & osteopenia, >= 50 & normal/osteopenia/unknown
                             -> Prevention-1; osteoporosis -> Treatment
    >= 7.5 mg   fracture -> Prevention-2
                no fracture: normal/osteopenia/unknown -> Prevention-1;
                             osteoporosis -> Treatment

Prevention-1 has an anabolic-first variant for patients with further high-risk
factors. Under a PTH contraindication the anabolic regimens switch to
Romosozumab (Denosumab after a recent CV event). Anything else returns None:
the standard algorithm applies.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .profile import (
    DOSE_5_TO_75,
    DOSE_GE_75,
    DOSE_LT_5,
    DerivedFlags,
    PatientProfile,
    derive_flags,
    has_other_high_risk,
)
from .regimen import RegimenRecommendation, regimen
from .rules import DEFAULT_RULES, rule_value

GIO_PREVENTION_1 = "prevention_1"
GIO_PREVENTION_2 = "prevention_2"
GIO_TREATMENT = "treatment"


@dataclass(frozen=True)
class GIOResult:
    algorithm: str
    regimen: RegimenRecommendation


def _pth_contraindicated(p: PatientProfile, rule_id: str, note: str) -> RegimenRecommendation:
    """Anabolic-first regimen without PTH analogs; Romosozumab only without a recent CV event."""
    if p.cv_event_recent_12m:
        return regimen(
            "{denosumab}", "{bisphosphonate}",
            note=note + " Romosozumab wegen kardiovaskulärem Ereignis vermeiden und PTH-Analoga kontraindiziert: Denosumab empfohlen.",
            rule_id=rule_id + "-PTH",
        )
    return regimen(
        "{romosozumab}", "{denosumab}", "{bisphosphonate}",
        note=note + " PTH-Analoga kontraindiziert: Romosozumab als osteoanabole Therapie empfohlen.",
        rule_id=rule_id + "-PTH",
    )


def _treatment(p: PatientProfile) -> GIOResult:
    note = "Wenn möglich, auch eine Reduktion der Glukokortikoiddosis prüfen."
    if p.contraindication_pth:
        return GIOResult(GIO_TREATMENT, regimen(
            "{denosumab}",
            "{bisphosphonate}",
            note="PTH-Analoga kontraindiziert: Denosumab empfohlen. " + note,
            rule_id="GIO-TX-PTH",
        ))
    return GIOResult(GIO_TREATMENT, regimen(
        "{denosumab} / {teriparatide} · {abaloparatide} (bei hohem Frakturrisiko)",
        "{bisphosphonate}",
        note="Bei hohem Frakturrisiko osteoanabole Therapie erwägen. " + note,
        rule_id="GIO-TX",
    ))


def _prevention_1(p: PatientProfile, other_high_risk: bool) -> GIOResult:
    if other_high_risk:
        if p.contraindication_pth:
            return GIOResult(GIO_PREVENTION_1, _pth_contraindicated(
                p, "GIO-P1-ANABOLIC", "Glukokortikoidtherapie mit weiteren Risikofaktoren.",
            ))
        return GIOResult(GIO_PREVENTION_1, regimen(
            "{teriparatide} (Osteoporose mit hohem Frakturrisiko)",
            "{denosumab}",
            "{bisphosphonate}",
            note="Teriparatid verhindert Wirbelkörperfrakturen wirksamer als Bisphosphonate und wird daher empfohlen.",
            rule_id="GIO-P1-ANABOLIC",
        ))
    return GIOResult(GIO_PREVENTION_1, regimen(
        "{bisphosphonate} oder {denosumab}",
        "{serm} / {eldecalcitol}",
        note="Therapieeinleitung im Sinne einer glukokortikoidinduzierten Osteoporose empfohlen.",
        rule_id="GIO-P1-STANDARD",
    ))


def _prevention_2(p: PatientProfile) -> GIOResult:
    if p.contraindication_pth:
        return GIOResult(GIO_PREVENTION_2, _pth_contraindicated(
            p, "GIO-P2", "Vorbestehende Fraktur mit hohem Frakturrisiko.",
        ))
    return GIOResult(GIO_PREVENTION_2, regimen(
        "{teriparatide} (Osteoporose mit hohem Frakturrisiko)",
        "{denosumab}",
        "{bisphosphonate}",
        note="Vorbestehende Fraktur mit hohem Frakturrisiko: osteoanabole Therapie als erste Wahl.",
        rule_id="GIO-P2",
    ))


def select_gio_regimen(
    p: PatientProfile,
    flags: Optional[DerivedFlags] = None,
    rules: Optional[Dict[str, Any]] = None,
) -> Optional[GIOResult]:
    if not p.steroid_current:
        return None
    rules = rules or DEFAULT_RULES
    flags = flags or derive_flags(p, rules)
    adult = rule_value(rules, "gio", "adult_ge")
    senior = rule_value(rules, "gio", "senior_ge")

    age = p.age
    osteoporosis = flags.is_osteoporosis
    not_osteoporotic = flags.is_normal or flags.is_osteopenia or flags.is_bmd_unknown
    other_risk = has_other_high_risk(p)

    if p.steroid_dose == DOSE_LT_5:
        if flags.has_fracture_history:
            return _prevention_2(p)
        if age >= senior and not_osteoporotic:
            return _prevention_1(p, other_risk)
        if adult <= age < senior and flags.is_osteopenia:
            return _prevention_1(p, other_risk)
        if osteoporosis:
            return _prevention_1(p, other_risk)
        return None

    if p.steroid_dose == DOSE_5_TO_75:
        if flags.has_fracture_history:
            return _prevention_2(p)
        if age < adult and flags.is_osteopenia:
            return _prevention_1(p, other_risk)
        if age >= adult and not_osteoporotic:
            return _prevention_1(p, other_risk)
        if osteoporosis:
            return _treatment(p)
        return None

    if p.steroid_dose == DOSE_GE_75:
        if flags.has_fracture_history:
            return _prevention_2(p)
        if not_osteoporotic:
            return _prevention_1(p, other_risk)
        if osteoporosis:
            return _treatment(p)
        return None

    # current use without a documented dose
    return None
