# -*- coding: utf-8 -*-
"""
Ordered first-match rule lists.

A cascade is a list of rules evaluated top-down. A rule fires when its
condition holds AND its producer returns a value; a producer may return None
to hand over to the next rule (used where a branch depends on a sub-algorithm
result, e.g. the GIO selector). Each cascade owns a mandatory default rule
whose producer must always return a value.

    cascade = Cascade("risk", [Rule("R01", "T < -3.3", cond, produce), ...],
                      default=Rule("R12", "Low", always, produce_low))
    rule_id, value = cascade.evaluate(ctx)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CascadeExhausted(RuntimeError):
    """No rule of a cascade produced a value. Always a defect in the rule table."""


def always(ctx: Any) -> bool:
    return True


@dataclass(frozen=True)
class Rule(Generic[T]):
    rule_id: str
    title: str
    when: Callable[[Any], bool]
    then: Callable[[Any], Any]


class Cascade(Generic[T]):
    def __init__(self, name: str, rules: Sequence[Rule], default: Rule):
        self.name = name
        self.rules: List[Rule] = list(rules)
        self.default = default
        ids = [r.rule_id for r in self.rules] + [default.rule_id]
        if len(set(ids)) != len(ids):
            raise ValueError(f"cascade {name}: duplicate rule ids {ids}")

    def rule_ids(self) -> List[str]:
        return [r.rule_id for r in self.rules] + [self.default.rule_id]

    def evaluate(self, ctx: Any) -> Tuple[str, T]:
        for rule in self.rules:
            if not rule.when(ctx):
                continue
            value = rule.then(ctx)
            if value is None:
                logger.debug(f"cascade {self.name}: {rule.rule_id} matched but deferred")
                continue
            logger.debug(f"cascade {self.name}: {rule.rule_id} fired ({rule.title})")
            return rule.rule_id, value

        value = self.default.then(ctx)
        if value is None:
            raise CascadeExhausted(f"cascade {self.name}: default rule {self.default.rule_id} produced nothing")
        logger.debug(f"cascade {self.name}: default {self.default.rule_id} fired ({self.default.title})")
        return self.default.rule_id, value
