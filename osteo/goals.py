# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Tuple

from .cascade import Cascade, Rule, always
from .classify import AH_CASE_1, AH_CASE_2, RISK_HIGH, RISK_LOW, RISK_VERY_HIGH, antihormonal_goal_t
from .context import EvaluationContext
from .treatment import GYN_COORDINATION


def _antihormonal_goal(ctx: EvaluationContext) -> str:
    return f"Frakturprävention, T-Score ≥ {antihormonal_goal_t(ctx.antihormonal_case, ctx.rules)}"


GOAL_CASCADE: Cascade[str] = Cascade("goal", [
    Rule("G01", "frühe Menopause",
         lambda c: c.flags.is_early_menopause_rule,
         lambda c: GYN_COORDINATION),
    Rule("G02", "Fraktur + Osteopenie",
         lambda c: c.flags.has_fracture_history and c.flags.is_osteopenia,
         lambda c: "① Femurhals-BMD +3 %  ② T-Score ≥ -1.0"),
    Rule("G03", "Fraktur",
         lambda c: c.flags.has_fracture_history,
         lambda c: "T-Score ≥ -1.0 erreichen und Folgefrakturen verhindern"),
    Rule("G04", "GIO-Algorithmus greift",
         lambda c: c.gio is not None,
         lambda c: "Frakturprävention, Normalisierung und Erhalt der Knochendichte (T ≥ -1.0)"),
    # case 2 before case 1; the goal value is shared with the treatment note
    Rule("G05", "antihormonelle Therapie, Fall 2",
         lambda c: c.antihormonal_case == AH_CASE_2, _antihormonal_goal),
    Rule("G06", "antihormonelle Therapie, Fall 1",
         lambda c: c.antihormonal_case == AH_CASE_1, _antihormonal_goal),
    Rule("G07", "Osteoporose",
         lambda c: c.flags.is_osteoporosis,
         lambda c: "Ziel T-Score > -2.5, möglichst innerhalb von 3 Jahren."),
    Rule("G08", "Osteopenie mit hohem/sehr hohem Risiko",
         lambda c: c.flags.is_osteopenia and c.risk in (RISK_HIGH, RISK_VERY_HIGH),
         lambda c: "T-Score > -2.5 halten und weiter steigern."),
    Rule("G09", "normale Knochendichte",
         lambda c: c.flags.is_normal,
         lambda c: "Knochendichte erhalten und Frakturen vorbeugen."),
    Rule("G10", "Osteopenie mit niedrigem Risiko",
         lambda c: c.flags.is_osteopenia and c.risk == RISK_LOW,
         lambda c: "Erhalt der Knochenmasse durch Lebensstilberatung"),
], default=Rule("G11", "allgemein", always, lambda c: "Knochenmasse erhalten, Frakturen vermeiden"))


def determine_goal(ctx: EvaluationContext) -> Tuple[str, str]:
    return GOAL_CASCADE.evaluate(ctx)
