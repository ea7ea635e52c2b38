# -*- coding: utf-8 -*-
"""
Drug selection.

Special cases first (pregnancy, early menopause, early postmenopause, rare
case, menopausal transition), then the GIO and antihormonal sub-algorithms,
then the standard algorithm by risk tier. Every branch is a rule of
TREATMENT_CASCADE; the very-high and high tiers are cascades of their own.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

from .cascade import Cascade, Rule, always
from .classify import RISK_HIGH, RISK_LOW, RISK_VERY_HIGH, antihormonal_goal_t
from .context import EvaluationContext
from .profile import MENOPAUSE_PREGNANCY, MENOPAUSE_YES, SEX_FEMALE
from .regimen import BLANK_LINE, RegimenLine, RegimenRecommendation, regimen
from .rules import rule_value

GYN_COORDINATION = "Abstimmung mit der Gynäkologie"

_HRT_REFERRAL = "Überweisung zur Gynäkologie: Indikation für eine Hormonersatztherapie prüfen"
_LIFESTYLE = "Lebensstilberatung, Ernährungs- und Bewegungstherapie"
_SERM_LUMBAR = "{serm} (nur lumbale Osteoporose)"
_SERM_AGE_NOTE = " (Bei rein lumbaler Osteoporose ist auch ein SERM eine Option.)"
_AH_PREFIX = "Unter antihormoneller Therapie (Mamma-/Prostatakarzinom): "


# --- shared predicates --------------------------------------------------------

def is_main_anabolic_rule(ctx: EvaluationContext) -> bool:
    """Osteoporosis with a fracture of any kind, or T < -3.3."""
    f = ctx.flags
    return (f.has_fracture_any_kind and f.is_osteoporosis) or f.is_severe_osteoporosis


def is_severe_vertebral_fx_rule(ctx: EvaluationContext) -> bool:
    return ctx.profile.fx_vertebral_severe or ctx.profile.fx_morphological_severe


def _age(ctx: EvaluationContext, key: str) -> int:
    return rule_value(ctx.rules, "age", key)


def _senior_serm(ctx: EvaluationContext) -> bool:
    return ctx.profile.age >= _age(ctx, "serm_note_ge")


# --- special cases ------------------------------------------------------------

def _pregnancy(ctx: EvaluationContext) -> RegimenRecommendation:
    return regimen(
        RegimenLine(
            "In dieser Phase ist eine ausreichende Calciumzufuhr über die Ernährung besonders wichtig. "
            "Die Notwendigkeit einer medikamentösen Therapie bitte mit der betreuenden Gynäkologie besprechen."
        ),
        BLANK_LINE,
        BLANK_LINE,
        note="Teriparatid, Abaloparatid, Denosumab, SERM und Eldecalcitol sind in der Schwangerschaft nicht anwendbar.",
    )


def _early_menopause(ctx: EvaluationContext) -> RegimenRecommendation:
    if ctx.flags.is_osteoporosis:
        return regimen(
            "Eine Hormonersatztherapie ist wahrscheinlich indiziert. Bitte Rücksprache mit der Gynäkologie.",
            "Bleibt der Anstieg der Knochendichte unter Hormonersatztherapie gering und ist das Frakturrisiko hoch, "
            "kann zusätzlich eine Osteoporosetherapie nötig werden. Bitte fachärztliche Vorstellung veranlassen.",
            note=GYN_COORDINATION,
        )
    return regimen(
        "Eine Hormonersatztherapie ist möglicherweise indiziert. Bitte Rücksprache mit der Gynäkologie.",
        note=GYN_COORDINATION,
    )


def _in_postmenopause_window(ctx: EvaluationContext, upper_key: str) -> bool:
    p = ctx.profile
    return (
        _age(ctx, "menopause_window_from") <= p.age < _age(ctx, upper_key)
        and p.menopause == MENOPAUSE_YES
        and not ctx.flags.has_fracture_any_kind
    )


def _postmenopause_severe(ctx: EvaluationContext) -> RegimenRecommendation:
    if ctx.profile.contraindication_pth:
        return regimen(
            "{romosozumab}",
            _HRT_REFERRAL,
            "{denosumab}",
            note="Osteoporose mit hohem Frakturrisiko. PTH-Analoga kontraindiziert: Romosozumab als osteoanabole Therapie.",
        )
    return regimen(
        "{romosozumab} / {teriparatide} / {abaloparatide}",
        _HRT_REFERRAL,
        "{denosumab}",
        note="Osteoporose mit hohem Frakturrisiko: osteoanabole Therapie erwägen.",
    )


def _postmenopause_early(ctx: EvaluationContext) -> RegimenRecommendation:
    return regimen(
        "{bisphosphonate} / {denosumab}",
        _HRT_REFERRAL,
        note="Frühe Postmenopause: Mitbetreuung durch die Gynäkologie erwägen.",
    )


def _rare_case(ctx: EvaluationContext) -> RegimenRecommendation:
    checklist = "\n".join([
        "- Abklärung sekundärer Osteoporoseursachen (mit Hausärzt:in bzw. Fachärzt:in)",
        "- Frakturrisiko mit FRAX beurteilen, beeinflussbare Risikofaktoren korrigieren (Alkohol, Rauchen, Gewicht)",
        "- Sturzprophylaxe (Begleiterkrankungen und sturzfördernde Medikamente prüfen)",
        "- Konsequente Bewegungs- und Ernährungstherapie, Knochendichtekontrolle mindestens jährlich",
    ])
    return regimen(
        RegimenLine(checklist),
        "{bisphosphonate} oder {denosumab} oder {eldecalcitol} als Monotherapie",
        rare_case=True,
    )


def _is_menopausal_transition(ctx: EvaluationContext) -> bool:
    p = ctx.profile
    return (
        p.sex == SEX_FEMALE
        and _age(ctx, "menopause_window_from") <= p.age <= _age(ctx, "transition_le")
        and ctx.flags.is_osteopenia
        and not ctx.flags.has_fracture_history
        and ctx.risk == RISK_LOW
    )


def _menopausal_transition(ctx: EvaluationContext) -> RegimenRecommendation:
    return regimen(
        "Bei klimakterischen Beschwerden Hormonersatztherapie (Kontraindikationen: Thromboembolie in der Anamnese, "
        "Mammakarzinom, Endometriumkarzinom). Gynäkologische Vorstellung erwägen.",
        "Lebensstiloptimierung, konsequente Bewegungs- und Ernährungstherapie, Knochendichtekontrolle mindestens jährlich",
        BLANK_LINE,
        note=(
            "Typische klimakterische Beschwerden: Hitzewallungen, fliegende Hitze, Schweißausbrüche, Schlafstörungen, "
            "depressive Verstimmung, Erschöpfung, Reizbarkeit, vaginale Trockenheit, Dyspareunie, "
            "Pollakisurie/Miktionsbeschwerden, Zyklusstörungen, Amenorrhoe"
        ),
        menopausal_transition=True,
    )


# --- sub-algorithms -----------------------------------------------------------

def _gio(ctx: EvaluationContext) -> Optional[RegimenRecommendation]:
    return ctx.gio.regimen if ctx.gio is not None else None


def _antihormonal_osteoporosis() -> RegimenRecommendation:
    return regimen(
        "{denosumab} / {zoledronate}",
        "{alendronate} / {risedronate}",
        note=_AH_PREFIX + "Denosumab oder Zoledronsäure empfohlen.",
    )


def _antihormonal(ctx: EvaluationContext) -> Optional[RegimenRecommendation]:
    f = ctx.flags
    # T < -3.3 stays with the very-high (anabolic) branch
    if f.is_osteoporosis and not f.is_severe_osteoporosis:
        return _antihormonal_osteoporosis()
    if ctx.antihormonal_case is not None:
        goal_t = antihormonal_goal_t(ctx.antihormonal_case, ctx.rules)
        return regimen(
            "{denosumab} oder {zoledronate}",
            "{alendronate} oder {risedronate}",
            note=(
                _AH_PREFIX + f"T-Score < {goal_t}, daher Therapie empfohlen. "
                "Die Kombination von SERM und Aromatasehemmer wird grundsätzlich nicht empfohlen."
            ),
        )
    return None


# --- very high risk -----------------------------------------------------------

def _anabolic_note(ctx: EvaluationContext, suffix: str = "") -> str:
    if ctx.flags.has_fracture_any_kind:
        base = "Osteoporose mit Fraktur gilt als schwere Osteoporose: osteoanabole Therapie als erste Wahl."
    else:
        base = "Osteoporose mit hohem Frakturrisiko: osteoanabole Therapie als erste Wahl."
    return base + suffix


def _main_anabolic(ctx: EvaluationContext) -> RegimenRecommendation:
    p = ctx.profile
    if p.cv_event_recent_12m:
        if p.contraindication_pth:
            return regimen(
                "{denosumab}", "{bisphosphonate}",
                note="Romosozumab wegen kardiovaskulärem Risiko vermeiden und PTH-Analoga kontraindiziert: Denosumab empfohlen.",
                rule_id="T09-MAIN-CV-PTH",
            )
        return regimen(
            "{teriparatide} oder {abaloparatide}", "{denosumab}", "{bisphosphonate}",
            note=(
                "Romosozumab wegen kardiovaskulärem Ereignis vermeiden. "
                "Hohes Frakturrisiko: osteoanabole Therapie empfohlen."
            ),
            rule_id="T09-MAIN-CV",
        )
    if p.risk_antihormonal:
        return regimen(
            "{romosozumab}", "{denosumab}", "{bisphosphonate}",
            note=_anabolic_note(ctx, " PTH-Analoga werden unter antihormoneller Therapie grundsätzlich nicht empfohlen."),
            rule_id="T09-MAIN-AH",
        )
    if p.contraindication_pth:
        return regimen(
            "{romosozumab}", "{denosumab}", "{bisphosphonate}",
            note="PTH-Analoga kontraindiziert (Hyperkalzämie, Knochentumor u. a.): Romosozumab als osteoanabole Therapie empfohlen.",
            rule_id="T09-MAIN-PTH",
        )
    return regimen(
        "{romosozumab} / {teriparatide} / {abaloparatide}", "{denosumab}", "{bisphosphonate}",
        note=_anabolic_note(ctx),
        rule_id="T09-MAIN",
    )


def _severe_vertebral(ctx: EvaluationContext) -> RegimenRecommendation:
    p = ctx.profile
    if p.cv_event_recent_12m:
        if p.contraindication_pth:
            return regimen(
                "{denosumab}", "{bisphosphonate}",
                note=(
                    "Schwere Wirbelkörperfraktur, jedoch kardiovaskuläres Risiko (Romosozumab vermeiden) "
                    "und PTH-Kontraindikation: Denosumab empfohlen."
                ),
                rule_id="T09-VERT-CV-PTH",
            )
        return regimen(
            "{teriparatide} oder {abaloparatide}", "{denosumab}", "{bisphosphonate}",
            note="Schwere Wirbelkörperfraktur. Romosozumab wegen kardiovaskulärem Ereignis vermeiden.",
            rule_id="T09-VERT-CV",
        )
    if p.contraindication_pth:
        return regimen(
            "{romosozumab}", "{denosumab}", "{bisphosphonate}",
            note="Schwere Wirbelkörperfraktur. PTH-Analoga kontraindiziert: Romosozumab als erste Wahl.",
            rule_id="T09-VERT-PTH",
        )
    return regimen(
        "{teriparatide} / {abaloparatide}", "{romosozumab}", "{denosumab} oder {bisphosphonate}",
        note=(
            "Schwere Wirbelkörperfrakturen (multipel, hochgradige Sinterung) entsprechen einer Osteoporose mit hohem "
            "Frakturrisiko: osteoanabole Therapie empfohlen. Für die Sequenztherapie werden die Präparate der Drittlinie empfohlen."
        ),
        rule_id="T09-VERT",
    )


VERY_HIGH_CASCADE: Cascade[RegimenRecommendation] = Cascade("treatment/very_high", [
    Rule("T09-ORAL", "Injektionstherapie nicht möglich",
         lambda c: not c.profile.injectable,
         lambda c: regimen(
             "{bisphosphonate} (oral/i.v.)",
             note=(
                 "Injektionstherapie nicht möglich: Bisphosphonat empfohlen. Bei unzureichender Wirkung "
                 "oder neuer Fraktur Injektionstherapie erneut prüfen."
             ),
         )),
    Rule("T09-MAIN", "Osteoporose + Fraktur oder T < -3.3", is_main_anabolic_rule, _main_anabolic),
    Rule("T09-VERT", "schwere Wirbelkörperfraktur", is_severe_vertebral_fx_rule, _severe_vertebral),
], default=Rule("T09-DENO", "Kriterien osteoanabole Therapie nicht erfüllt", always, lambda c: regimen(
    "{denosumab}", "{bisphosphonate}",
    note=(
        "Die Kriterien für eine osteoanabole Therapie (Osteoporose mit Fraktur oder schwere Osteoporose) "
        "sind nicht erfüllt: Denosumab empfohlen."
    ),
)))


# --- high risk ----------------------------------------------------------------

def _high_osteoporosis(ctx: EvaluationContext) -> RegimenRecommendation:
    note = "Erhöhtes Frakturrisiko: zunächst Bisphosphonat oder Denosumab empfohlen."
    if _senior_serm(ctx):
        note += _SERM_AGE_NOTE
    return regimen("{bisphosphonate} (oral/i.v.)", "{denosumab}", _SERM_LUMBAR, note=note)


def _oral_second_line(ctx: EvaluationContext) -> str:
    if ctx.profile.risk_antihormonal or _senior_serm(ctx):
        return "---"
    return "{serm}"


def _high_osteopenia(ctx: EvaluationContext) -> RegimenRecommendation:
    fracture = ctx.flags.has_fracture_history
    if ctx.profile.injectable:
        if fracture:
            third = "Langzeittherapie (ohne Therapiepause fortführen)"
            note = "Osteopenie, aber Fragilitätsfraktur in der Anamnese: Denosumab empfohlen."
        else:
            third = _SERM_LUMBAR
            note = "Osteopenie mit zusätzlichen Risikofaktoren: Denosumab empfohlen."
            if _senior_serm(ctx):
                note += _SERM_AGE_NOTE
        return regimen("{denosumab}", "{bisphosphonate}", third, note=note)
    return regimen(
        "{bisphosphonate}", _oral_second_line(ctx),
        note="Injektionstherapie nicht möglich: orale Therapie empfohlen.",
    )


HIGH_CASCADE: Cascade[RegimenRecommendation] = Cascade("treatment/high", [
    Rule("T10-OPENIA-RISK", "Osteopenie + Hochrisikofaktor ohne klinische Fraktur",
         lambda c: (
             c.flags.has_high_risk_factor and c.flags.is_osteopenia
             and not c.profile.fx_any and c.profile.injectable
         ),
         lambda c: regimen(
             "{denosumab}", "{bisphosphonate}", _SERM_LUMBAR,
             note=(
                 "Osteopenie mit Hochrisikofaktor: Denosumab empfohlen. "
                 "Bei erhaltener Knochendichte am Femur kann auch ein SERM erwogen werden."
             ),
         )),
    Rule("T10-AH", "Osteoporose unter antihormoneller Therapie",
         lambda c: c.flags.is_osteoporosis and c.profile.risk_antihormonal,
         lambda c: _antihormonal_osteoporosis()),
    Rule("T10-OP", "Osteoporose", lambda c: c.flags.is_osteoporosis, _high_osteoporosis),
    Rule("T10-OPENIA", "Osteopenie + (Hochrisikofaktor oder Fraktur)",
         lambda c: c.flags.is_osteopenia and (c.flags.has_high_risk_factor or c.flags.has_fracture_history),
         _high_osteopenia),
    Rule("T10-LIFESTYLE", "normale Knochendichte + Hochrisikofaktor, keine klinische Fraktur",
         lambda c: c.flags.is_normal and c.flags.has_high_risk_factor and not c.profile.fx_any,
         lambda c: regimen(
             _LIFESTYLE,
             note=(
                 "Die Kriterien für eine medikamentöse Therapie sind derzeit nicht erfüllt. Wegen vorhandener "
                 "Hochrisikofaktoren aktive Suche nach Wirbelkörperfrakturen und jährliche Knochendichtemessung empfohlen."
             ),
         )),
], default=Rule("T10-DEFAULT", "Standardtherapie", always, lambda c: regimen(
    "{bisphosphonate}", _oral_second_line(c),
    note="Standardtherapie erwägen.",
)))


def _subcascade(cascade: Cascade) -> Callable[[EvaluationContext], RegimenRecommendation]:
    def run(ctx: EvaluationContext) -> RegimenRecommendation:
        rule_id, rec = cascade.evaluate(ctx)
        # matrix branches set a finer id themselves
        return rec if rec.rule_id else rec.with_rule(rule_id)
    return run


TREATMENT_CASCADE: Cascade[RegimenRecommendation] = Cascade("treatment", [
    Rule("T01", "Schwangerschaft/Stillzeit",
         lambda c: c.profile.menopause == MENOPAUSE_PREGNANCY, _pregnancy),
    Rule("T02", "frühe Menopause (40-44 Jahre)",
         lambda c: c.flags.is_early_menopause_rule, _early_menopause),
    Rule("T03", "frühe Postmenopause, T < -3.3, keine Fraktur",
         lambda c: _in_postmenopause_window(c, "postmenopause_severe_lt") and c.flags.is_severe_osteoporosis,
         _postmenopause_severe),
    Rule("T04", "frühe Postmenopause, Osteoporose, keine Fraktur",
         lambda c: _in_postmenopause_window(c, "postmenopause_early_lt") and c.flags.is_osteoporosis,
         _postmenopause_early),
    Rule("T05", "seltener Fall: normale BMD + Fraktur < 24 Monate",
         lambda c: c.flags.is_normal and c.profile.fx_recent_24m and not c.profile.fx_severe,
         _rare_case),
    Rule("T06", "menopausaler Übergang mit Osteopenie",
         _is_menopausal_transition, _menopausal_transition),
    Rule("T07", "GIO-Algorithmus",
         lambda c: not (is_main_anabolic_rule(c) or is_severe_vertebral_fx_rule(c)), _gio),
    Rule("T08", "antihormonelle Therapie ohne Fraktur",
         lambda c: not c.flags.has_fracture_any_kind and c.profile.risk_antihormonal, _antihormonal),
    Rule("T09", "sehr hohes Risiko",
         lambda c: c.risk == RISK_VERY_HIGH, _subcascade(VERY_HIGH_CASCADE)),
    Rule("T10", "hohes Risiko",
         lambda c: c.risk == RISK_HIGH, _subcascade(HIGH_CASCADE)),
], default=Rule("T11", "niedriges Risiko", always, lambda c: regimen(_LIFESTYLE)))


def select_treatment(ctx: EvaluationContext) -> Tuple[str, RegimenRecommendation]:
    """
    Returns (rule_id, recommendation). The recommendation carries the most
    specific rule id (e.g. "T09-MAIN-CV"), the first element the top-level rule.
    """
    rule_id, rec = TREATMENT_CASCADE.evaluate(ctx)
    if not rec.rule_id:
        rec = rec.with_rule(rule_id)
    return rule_id, rec
