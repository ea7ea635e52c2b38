# -*- coding: utf-8 -*-
"""
Safety warnings.

A fixed-order scan over the profile, cross-checked against the agents of the
regimen that was already selected. The cross-check looks at the agent tags of
each line, not at the rendered text, so rewording a line cannot hide a
contraindicated drug.
"""
from __future__ import annotations

from typing import FrozenSet, List, Optional

from .profile import CKD_G1_2, CKD_G3, CKD_G4_5, PatientProfile
from .regimen import CV_SENSITIVE, PTH_ANALOGS, SERM, RegimenRecommendation

CRITICAL = "CRITICAL"
WARNING = "WARNING"

W_CKD_ORAL_BP = (
    "CKD G4-5: Orale Bisphosphonate (Alendronsäure/Minodronsäure) nur mit Vorsicht einsetzbar. "
    "Auf akutes Nierenversagen achten."
)
W_CKD_DENOSUMAB = (
    "Unter Denosumab besteht ein hohes Hypokalzämierisiko: Calcium/Vitamin D unbedingt vorher ausgleichen "
    "und die Therapie vorsichtig einleiten."
)
W_CKD_UNKNOWN = "Nierenfunktion unbekannt. Vor Beginn von Bisphosphonat/Denosumab die eGFR bestimmen."
W_HYPOCALCEMIA = (
    "Hypokalzämie: Romosozumab, Denosumab und Bisphosphonate erst nach sicherem Ausgleich mit Calcium "
    "und Vitamin D einsetzen."
)
W_HYPERCALCEMIA = (
    "Hyperkalzämie: Aktive Vitamin-D-Präparate und Calciumsupplemente absetzen und die Ursache abklären. "
    "Malignome (Lungen-, Mamma-, Prostatakarzinom, hämatologische Neoplasien), primärer Hyperparathyreoidismus, "
    "Sarkoidose u. a."
)
W_PTH_CONTRA = (
    "PTH-Analoga (Teriparatid/Abaloparatid): wegen Kontraindikation (Hyperkalzämie, Knochentumor u. a.) "
    "nicht anwendbar."
)
W_PTH_CONTRA_SELECTED = f"{CRITICAL}: Die aktuelle Auswahl enthält Teriparatid/Abaloparatid, die in diesem Fall zu vermeiden sind."
W_AH_PTH = (
    "Unter antihormoneller Therapie: Teriparatid und Abaloparatid grundsätzlich nicht einsetzen. "
    "Knochenmetastasen sorgfältig ausschließen."
)
W_AH_SERM = (
    "Unter antihormoneller Therapie: Die Kombination von Aromatasehemmer und SERM wird nicht empfohlen "
    "(mögliche Abschwächung der Brustkrebstherapie)."
)
W_AH_PTH_SELECTED = f"{WARNING}: Wegen antihormoneller Therapie vor Einsatz eines PTH-Analogons Knochenmetastasen sicher ausschließen."
W_AH_SERM_SELECTED = f"{WARNING}: Wegen antihormoneller Therapie keine Kombination mit einem SERM."
W_CV = "Kardiovaskuläres Ereignis in den letzten 12 Monaten: Romosozumab grundsätzlich vermeiden."
W_CV_SELECTED = f"{CRITICAL}: Die aktuelle Auswahl enthält Romosozumab, das in diesem Fall zu vermeiden ist."


def _selected(treatment: Optional[RegimenRecommendation], *positions: int) -> FrozenSet[str]:
    if treatment is None:
        return frozenset()
    return treatment.agents(*positions)


def is_critical(warning: str) -> bool:
    return warning.startswith(CRITICAL)


def generate_warnings(p: PatientProfile, treatment: Optional[RegimenRecommendation]) -> List[str]:
    warnings: List[str] = []

    if p.ckd_stage == CKD_G4_5:
        warnings.append(W_CKD_ORAL_BP)
        warnings.append(W_CKD_DENOSUMAB)
    elif p.ckd_stage not in (CKD_G1_2, CKD_G3):
        # unset or invalid stage
        warnings.append(W_CKD_UNKNOWN)

    if p.hypocalcemia_risk:
        warnings.append(W_HYPOCALCEMIA)
    if p.hypercalcemia:
        warnings.append(W_HYPERCALCEMIA)

    if p.contraindication_pth:
        warnings.append(W_PTH_CONTRA)
        if _selected(treatment, 1, 2) & PTH_ANALOGS:
            warnings.append(W_PTH_CONTRA_SELECTED)

    if p.risk_antihormonal:
        warnings.append(W_AH_PTH)
        warnings.append(W_AH_SERM)
        if _selected(treatment, 1, 2) & PTH_ANALOGS:
            warnings.append(W_AH_PTH_SELECTED)
        if SERM in _selected(treatment, 1, 2, 3):
            warnings.append(W_AH_SERM_SELECTED)

    if p.cv_event_recent_12m:
        warnings.append(W_CV)
        if _selected(treatment, 1) & CV_SENSITIVE:
            warnings.append(W_CV_SELECTED)

    return warnings
