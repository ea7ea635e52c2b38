# -*- coding: utf-8 -*-
"""
FRAX helper.

Projects the profile plus a few lifestyle answers onto the input fields of the
FRAX web calculator, for manual entry. Nothing here feeds back into `evaluate`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, NamedTuple

from .profile import SEX_FEMALE, PatientProfile

SEC_TYPE1_DIABETES = "type1_diabetes"
SEC_DIGESTIVE = "digestive"
SEC_EARLY_MENOPAUSE = "early_menopause"
SEC_HYPERTHYROIDISM = "hyperthyroidism"
SEC_OSTEOGENESIS_IMPERFECTA = "osteogenesis_imperfecta"
SEC_CHRONIC_HEPATITIS = "chronic_hepatitis"
SEC_ULCERATIVE_COLITIS = "ulcerative_colitis"
SEC_CROHN = "crohn"

# CKD, type-2 diabetes and COPD are not listed: FRAX does not
# count them as secondary osteoporosis.
SECONDARY_CONDITIONS: Dict[str, str] = {
    SEC_TYPE1_DIABETES: "Typ-1-Diabetes",
    SEC_DIGESTIVE: "Malabsorption / Z. n. Magen-Darm-Resektion",
    SEC_EARLY_MENOPAUSE: "vorzeitige Menopause (< 45 J.)",
    SEC_HYPERTHYROIDISM: "unbehandelte Hyperthyreose",
    SEC_OSTEOGENESIS_IMPERFECTA: "Osteogenesis imperfecta",
    SEC_CHRONIC_HEPATITIS: "chronische Hepatitis",
    SEC_ULCERATIVE_COLITIS: "Colitis ulcerosa",
    SEC_CROHN: "Morbus Crohn",
}

YES = "ja (YES)"
NO = "nein"


@dataclass(frozen=True)
class FraxInputs:
    alcohol: bool = False  # >= 3 units (24 g ethanol) per day
    smoking: bool = False
    rheumatoid_arthritis: bool = False
    secondary_conditions: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_selection(cls, alcohol: bool, smoking: bool, rheumatoid_arthritis: bool,
                       conditions: Iterable[str]) -> "FraxInputs":
        return cls(alcohol, smoking, rheumatoid_arthritis, frozenset(c for c in conditions if c))


@dataclass(frozen=True)
class FraxFields:
    age: int
    sex: str
    prev_fracture: bool
    parent_hip_fracture: bool
    smoking: bool
    glucocorticoids: bool
    rheumatoid_arthritis: bool
    secondary_osteoporosis: bool
    alcohol: bool


class FraxRow(NamedTuple):
    number: int
    label: str
    value: str
    highlight: bool


def map_to_frax(p: PatientProfile, extra: FraxInputs) -> FraxFields:
    secondary = bool(extra.secondary_conditions & set(SECONDARY_CONDITIONS)) or p.frax_early_menopause
    return FraxFields(
        age=p.age,
        sex=p.sex,
        prev_fracture=p.fx_any,
        parent_hip_fracture=p.risk_parent_hip_fx,
        smoking=extra.smoking,
        glucocorticoids=p.risk_steroid,
        rheumatoid_arthritis=extra.rheumatoid_arthritis,
        secondary_osteoporosis=secondary,
        alcohol=extra.alcohol,
    )


def _yn(num: int, label: str, value: bool) -> FraxRow:
    return FraxRow(num, label, YES if value else NO, value)


def frax_rows(f: FraxFields) -> List[FraxRow]:
    """The twelve FRAX input rows in calculator order; highlight = needs attention when typing."""
    return [
        FraxRow(1, "Alter", str(f.age), False),
        FraxRow(2, "Geschlecht", "weiblich" if f.sex == SEX_FEMALE else "männlich", False),
        FraxRow(3, "Gewicht", "Gewicht (kg) eingeben", True),
        FraxRow(4, "Größe", "Größe (cm) eingeben", True),
        _yn(5, "Frühere Fraktur", f.prev_fracture),
        _yn(6, "Hüftfraktur eines Elternteils", f.parent_hip_fracture),
        _yn(7, "Aktueller Raucher", f.smoking),
        _yn(8, "Glukokortikoide", f.glucocorticoids),
        _yn(9, "Rheumatoide Arthritis", f.rheumatoid_arthritis),
        _yn(10, "Sekundäre Osteoporose", f.secondary_osteoporosis),
        _yn(11, "Alkohol (≥ 3 Einheiten/Tag)", f.alcohol),
        FraxRow(
            12, "Schenkelhals-BMD",
            "BMD + Gerätehersteller oder T-Score eingeben (erhöht die Genauigkeit, optional)", True,
        ),
    ]
