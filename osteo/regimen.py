# -*- coding: utf-8 -*-
from __future__ import annotations

import string
from dataclasses import dataclass, replace
from typing import Any, Dict, FrozenSet, Iterable, List

from .util import SafeDict

# --- Agents ------------------------------------------------------------------
# Codes double as template placeholders: "{denosumab} / {zoledronate}".

ROMOSOZUMAB = "romosozumab"
TERIPARATIDE = "teriparatide"
ABALOPARATIDE = "abaloparatide"
DENOSUMAB = "denosumab"
BISPHOSPHONATE = "bisphosphonate"
ZOLEDRONATE = "zoledronate"
ALENDRONATE = "alendronate"
RISEDRONATE = "risedronate"
SERM = "serm"
ELDECALCITOL = "eldecalcitol"

AGENT_LABELS: Dict[str, str] = {
    ROMOSOZUMAB: "Romosozumab",
    TERIPARATIDE: "Teriparatid",
    ABALOPARATIDE: "Abaloparatid",
    DENOSUMAB: "Denosumab",
    BISPHOSPHONATE: "Bisphosphonat",
    ZOLEDRONATE: "Zoledronsäure",
    ALENDRONATE: "Alendronsäure",
    RISEDRONATE: "Risedronsäure",
    SERM: "SERM",
    ELDECALCITOL: "Eldecalcitol",
}

PTH_ANALOGS: FrozenSet[str] = frozenset({TERIPARATIDE, ABALOPARATIDE})
CV_SENSITIVE: FrozenSet[str] = frozenset({ROMOSOZUMAB})

PLACEHOLDER = "---"


def extract_placeholders(template: str) -> List[str]:
    """Python-format placeholders {name} of a template, unique and sorted."""
    fields: List[str] = []
    for _, field_name, _, _ in string.Formatter().parse(template):
        if field_name:
            fields.append(field_name)
    return sorted(set(fields))


@dataclass(frozen=True)
class RegimenLine:
    text: str
    agents: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.text or self.text == PLACEHOLDER


def line(template: str) -> RegimenLine:
    """
    Build a regimen line from a template with agent placeholders.

    The rendered text uses the display labels; the set of placeholders is the
    line's agent set. Unknown placeholders raise, so a typo cannot silently drop
    an agent from the safety checks.
    """
    agents = extract_placeholders(template)
    unknown = [a for a in agents if a not in AGENT_LABELS]
    if unknown:
        raise KeyError(f"unbekannte Wirkstoff-Platzhalter: {unknown}")
    return RegimenLine(template.format_map(SafeDict(AGENT_LABELS)), frozenset(agents))


NONE_LINE = RegimenLine(PLACEHOLDER)
BLANK_LINE = RegimenLine("")


@dataclass(frozen=True)
class RegimenRecommendation:
    first_line: RegimenLine
    second_line: RegimenLine = NONE_LINE
    third_line: RegimenLine = NONE_LINE
    note: str = ""
    is_rare_case: bool = False
    is_menopausal_transition: bool = False
    rule_id: str = ""

    def lines(self) -> List[RegimenLine]:
        return [self.first_line, self.second_line, self.third_line]

    def agents(self, *positions: int) -> FrozenSet[str]:
        """Agents on the given 1-based line positions (all lines when none given)."""
        picked: Iterable[RegimenLine]
        if positions:
            all_lines = self.lines()
            picked = [all_lines[i - 1] for i in positions]
        else:
            picked = self.lines()
        out: set = set()
        for ln in picked:
            out |= ln.agents
        return frozenset(out)

    def with_rule(self, rule_id: str) -> "RegimenRecommendation":
        return replace(self, rule_id=rule_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "first_line": self.first_line.text,
            "second_line": self.second_line.text,
            "third_line": self.third_line.text,
            "note": self.note,
            "is_rare_case": self.is_rare_case,
            "is_menopausal_transition": self.is_menopausal_transition,
            "agents": {
                "first_line": sorted(self.first_line.agents),
                "second_line": sorted(self.second_line.agents),
                "third_line": sorted(self.third_line.agents),
            },
            "rule_id": self.rule_id,
        }


def regimen(
    first: Any,
    second: Any = NONE_LINE,
    third: Any = NONE_LINE,
    note: str = "",
    *,
    rule_id: str = "",
    rare_case: bool = False,
    menopausal_transition: bool = False,
) -> RegimenRecommendation:
    """Shorthand: plain strings are parsed as line templates."""
    def _ln(x: Any) -> RegimenLine:
        return x if isinstance(x, RegimenLine) else line(x)

    return RegimenRecommendation(
        first_line=_ln(first),
        second_line=_ln(second),
        third_line=_ln(third),
        note=note,
        is_rare_case=rare_case,
        is_menopausal_transition=menopausal_transition,
        rule_id=rule_id,
    )

