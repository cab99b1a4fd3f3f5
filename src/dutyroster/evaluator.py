"""Rule evaluation: the single place that turns (employee, slot, state) into codes."""

from __future__ import annotations

from typing import Iterable, Mapping, Protocol, Sequence, Type

from dutyroster.catalog import RuleCatalog
from dutyroster.errors import PlanningError, SolverInternalError
from dutyroster.rules.base import EvaluationContext, Rule, RuleSpec, StateProto
from dutyroster.rules.registry import build_rules, normalize_rule_specs
from dutyroster.staff import DutySlot, Employee


class EvaluatorProto(Protocol):
    catalog: RuleCatalog

    def evaluate(
        self,
        employee: Employee,
        slot: DutySlot,
        state: StateProto,
        ignore: Iterable[str] = (),
    ) -> list[str]: ...


class RuleEvaluator:
    """
    Evaluates the enabled rule set.

    The result is pure with respect to its arguments: the same (employee, slot,
    state) always yields the same codes, in catalog order. An empty list means
    the employee is eligible for the slot.
    """

    def __init__(
        self,
        ctx: EvaluationContext,
        rules: Sequence[RuleSpec | Type[Rule]] | None = None,
        enabled_rules: Mapping[str, bool] | None = None,
    ) -> None:
        self.ctx = ctx
        self.catalog: RuleCatalog = ctx.catalog
        self.rules: list[Rule] = build_rules(
            ctx, normalize_rule_specs(rules), enabled_rules
        )

    def evaluate(
        self,
        employee: Employee,
        slot: DutySlot,
        state: StateProto,
        ignore: Iterable[str] = (),
    ) -> list[str]:
        skip = frozenset(ignore)
        codes: list[str] = []
        for rule in self.rules:
            try:
                found = list(rule.check(employee, slot, state))
            except PlanningError:
                raise
            except Exception as exc:
                raise SolverInternalError(
                    f"Rule {rule.name} failed for employee {employee.id} "
                    f"on slot {slot.id}: {exc}"
                ) from exc
            for code in found:
                if code not in rule.codes:
                    raise SolverInternalError(
                        f"Rule {rule.name} returned undeclared code {code!r}"
                    )
                if code not in skip:
                    codes.append(code)
        return self.catalog.sort_codes(codes)

    def explain(
        self, employee: Employee, slot: DutySlot, state: StateProto
    ) -> dict[str, list[str]]:
        codes = self.evaluate(employee, slot, state)
        return {
            "hard": [c for c in codes if self.catalog.is_hard(c)],
            "soft": [c for c in codes if not self.catalog.is_hard(c)],
        }

    def hard_codes(self, codes: Iterable[str]) -> list[str]:
        return [c for c in codes if self.catalog.is_hard(c)]

    def soft_codes(self, codes: Iterable[str]) -> list[str]:
        return [c for c in codes if not self.catalog.is_hard(c)]
