# -*- coding: utf-8 -*-
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from .classify import RISK_HIGH, RISK_LOW, RISK_UNKNOWN, RISK_VERY_HIGH
from .drugdb import DrugInfo, find_by_label, load_drug_table
from .engine import Evaluation, evaluate
from .frax import FraxRow
from .intake import assemble_profile, check_inputs, has_minimum_input
from .profile import (
    CKD_G3,
    CKD_G4_5,
    MENOPAUSE_YES,
    SEX_FEMALE,
    T_25_TO_10,
    T_33_TO_25,
    T_GE_10,
    T_LT_33,
    PatientProfile,
)
from .regimen import PLACEHOLDER, RegimenLine, RegimenRecommendation
from .rules import DEFAULT_RULES, rule_value
from .safety import is_critical

RISK_LABELS: Dict[str, str] = {
    RISK_VERY_HIGH: "Sehr hoch",
    RISK_HIGH: "Hoch",
    RISK_LOW: "Niedrig",
    RISK_UNKNOWN: "Nicht beurteilbar",
}

LINE_TITLES = ("Erstlinie", "Zweitlinie", "Drittlinie")

NO_INPUT_MD = "Bitte mindestens Knochendichte, CKD-Stadium oder eine Fraktur angeben."
MEASURED_BANDS = (T_LT_33, T_33_TO_25, T_25_TO_10, T_GE_10)


def risk_badge_html(risk: Optional[str]) -> str:
    color = {
        RISK_VERY_HIGH: "#dc2626",
        RISK_HIGH: "#f97316",
        RISK_LOW: "#16a34a",
        RISK_UNKNOWN: "#6c757d",
    }.get(risk or "", "#64748b")
    label = RISK_LABELS.get(risk or "", "—")
    return (
        f'<span style="display:inline-block;padding:6px 12px;border-radius:999px;background:{color};'
        f'color:white;font-weight:700;font-size:14px;">Frakturrisiko: {label}</span>'
    )


# --- drug links -----------------------------------------------------------------

def linkify_drugs(text: str, table: Dict[str, DrugInfo]) -> str:
    """Turn drug labels into markdown links to their product information (longest label first)."""
    if not text:
        return text
    links = {info.label: info.link for info in table.values() if info.link}
    if not links:
        return text
    labels = sorted(links, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(lb) for lb in labels))
    return pattern.sub(lambda m: f"[{m.group(0)}]({links[m.group(0)]})", text)


def _line_md(ln: RegimenLine, table: Dict[str, DrugInfo]) -> str:
    if ln.is_empty:
        return f"*{PLACEHOLDER}*"
    return linkify_drugs(ln.text, table)


def regimen_markdown(treatment: Optional[RegimenRecommendation], table: Dict[str, DrugInfo]) -> str:
    if treatment is None:
        return "—"
    parts: List[str] = []
    for title, ln in zip(LINE_TITLES, treatment.lines()):
        body = _line_md(ln, table)
        if title == LINE_TITLES[0] and treatment.note:
            body += f"\n\n<small>{linkify_drugs(treatment.note, table)}</small>"
        parts.append(f"#### {title}\n{body}")
    return "\n\n".join(parts)


def warnings_markdown(warnings: List[str]) -> str:
    if not warnings:
        return "—"
    lines = []
    for w in warnings:
        lines.append(f"- **{w}**" if is_critical(w) else f"- {w}")
    return "\n".join(lines)


# --- info panels ----------------------------------------------------------------

PANEL_FRAX = (
    "**FRAX empfohlen:** Das 10-Jahres-Frakturrisiko mit FRAX berechnen "
    "(Hilfe zur Eingabe unten im Abschnitt FRAX)."
)
PANEL_RARE_CASE = (
    "**Seltener Fall:** Normale Knochendichte trotz Fraktur in den letzten 24 Monaten. "
    "Sekundäre Ursachen und Sturzrisiko gezielt abklären."
)
PANEL_TRANSITION = (
    "**Menopausaler Übergang:** Bei klimakterischen Beschwerden gynäkologische Vorstellung "
    "zur Hormonersatztherapie erwägen."
)
PANEL_CKD_45 = (
    "**CKD G4-5:** Erhöhtes Risiko für CKD-MBD. Vor Therapiebeginn Calcium, Phosphat, PTH und "
    "alkalische Phosphatase bestimmen, ggf. nephrologische Mitbetreuung."
)
PANEL_CKD_3 = "**CKD G3:** Dosis und Auswahl der Präparate an die Nierenfunktion anpassen, eGFR regelmäßig kontrollieren."
PANEL_RECENT_FX = (
    "**Fraktur in den letzten 24 Monaten:** Imminentes Frakturrisiko. Therapie zügig beginnen "
    "und Sturzprophylaxe einleiten."
)
PANEL_BMD_UNKNOWN = (
    "**Knochendichte nicht gemessen:** DXA-Messung (LWS und Hüfte) empfohlen. "
    "Ohne Knochendichte und ohne Fraktur ist keine Risikoeinstufung möglich."
)
PANEL_GIO = (
    "**Glukokortikoidtherapie:** Bei Dauertherapie ≥ 3 Monate Empfehlungen zur glukokortikoidinduzierten "
    "Osteoporose beachten, Dosis so niedrig wie möglich halten."
)


def info_panels(p: PatientProfile, ev: Evaluation, rules: Optional[Dict[str, Any]] = None) -> List[str]:
    rules = rules or DEFAULT_RULES
    panels: List[str] = []

    early_menopause = (
        p.sex == SEX_FEMALE and p.menopause == MENOPAUSE_YES
        and p.age < rule_value(rules, "age", "early_menopause_lt")
    )
    if ev.risk == RISK_LOW or early_menopause or p.t_group in (T_GE_10, T_25_TO_10):
        panels.append(PANEL_FRAX)

    if ev.treatment is not None:
        if ev.treatment.is_rare_case:
            panels.append(PANEL_RARE_CASE)
        if ev.treatment.is_menopausal_transition:
            panels.append(PANEL_TRANSITION)

    if p.ckd_stage == CKD_G4_5:
        panels.append(PANEL_CKD_45)
    elif p.ckd_stage == CKD_G3:
        panels.append(PANEL_CKD_3)
    if p.fx_recent_24m:
        panels.append(PANEL_RECENT_FX)
    if p.t_group not in MEASURED_BANDS:
        panels.append(PANEL_BMD_UNKNOWN)
    if p.steroid_current:
        panels.append(PANEL_GIO)
    return panels


def panels_markdown(panels: List[str]) -> str:
    if not panels:
        return "—"
    return "\n\n".join(f"> {p}" for p in panels)


# --- drug info / FRAX -----------------------------------------------------------

def drug_info_markdown(info: Optional[DrugInfo]) -> str:
    if info is None:
        return "—"
    lines: List[str] = [f"### {info.label}"]
    if info.indication:
        lines.append("**Indikation**")
        lines.append(info.indication)
    if info.contraindication:
        lines.append("**Kontraindikationen**")
        lines.extend(f"- {x}" for x in info.contraindication)
    if info.caution:
        lines.append("**Vorsicht**")
        lines.extend(f"- {x}" for x in info.caution)
    if info.link:
        lines.append(f"[Aktuelle Fachinformation (KEGG)]({info.link})")
    return "\n\n".join(lines)


def frax_table_markdown(rows: List[FraxRow]) -> str:
    out = ["| Nr. | Feld | Eingabe |", "|---:|---|---|"]
    for r in rows:
        value = f"**{r.value}**" if r.highlight else r.value
        out.append(f"| {r.number} | {r.label} | {value} |")
    return "\n".join(out)


# --- generator --------------------------------------------------------------------

class OsteoReportGenerator:
    def __init__(self, rules: Optional[Dict[str, Any]] = None, drugs: Optional[Dict[str, DrugInfo]] = None):
        self.rules = rules or DEFAULT_RULES
        self.drugs = drugs if drugs is not None else load_drug_table()

    def drug_info(self, label: str) -> str:
        return drug_info_markdown(find_by_label(self.drugs, label))

    def generate_all(self, ui: Dict[str, Any]) -> Tuple[str, str, str, str, str, str]:
        """
        Returns:
          risk_html, goal_md, regimen_md, warnings_md, panels_md, validation_md
        """
        validation_md = check_inputs(ui).to_markdown()
        if not has_minimum_input(ui):
            return risk_badge_html(None), NO_INPUT_MD, "—", "—", "—", validation_md

        profile = assemble_profile(ui, self.rules)
        ev = evaluate(profile, self.rules)
        return (
            risk_badge_html(ev.risk),
            ev.goal or "—",
            regimen_markdown(ev.treatment, self.drugs),
            warnings_markdown(ev.warnings),
            panels_markdown(info_panels(profile, ev, self.rules)),
            validation_md,
        )
