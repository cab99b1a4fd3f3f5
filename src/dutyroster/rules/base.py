# src/dutyroster/rules/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Protocol, Type

if TYPE_CHECKING:
    from dutyroster.catalog import RuleCatalog
    from dutyroster.config import Config
    from dutyroster.input_data import InputSnapshot, Period
    from dutyroster.staff import DutySlot, Employee


class StateProto(Protocol):
    """Read-only view of the running state that rules may query."""

    def assigned_count(self, employee_id: int) -> int: ...
    def week_count(self, employee_id: int, iso_week: tuple[int, int]) -> int: ...
    def weekend_count(self, employee_id: int) -> int: ...
    def has_duty_on(self, employee_id: int, day: date) -> bool: ...
    def had_overnight_on(self, employee_id: int, day: date) -> bool: ...
    def overlaps(
        self, employee_id: int, interval: tuple[datetime, datetime]
    ) -> bool: ...
    def last_holder(self, area: str) -> Optional[int]: ...


@dataclass(frozen=True)
class EvaluationContext:
    """Static, per-run facts the rules need besides (employee, slot, state)."""

    cfg: Config
    catalog: RuleCatalog
    period: Period
    closures: Mapping[date, frozenset[str]] = field(default_factory=dict)
    locked_empty: frozenset[str] = frozenset()
    absences: Mapping[int, Mapping[date, bool]] = field(default_factory=dict)

    @classmethod
    def from_snapshot(
        cls, snapshot: InputSnapshot, cfg: Config, catalog: RuleCatalog
    ) -> "EvaluationContext":
        return cls(
            cfg=cfg,
            catalog=catalog,
            period=snapshot.period,
            closures=snapshot.closures,
            locked_empty=snapshot.locked_empty_slots(),
            absences=snapshot.absence_index(),
        )


@dataclass
class RuleSpec:
    cls: Type["Rule"]
    order: int | None = None
    enabled: bool = True
    settings: dict[str, Any] = field(default_factory=dict)


class Rule(ABC):
    """
    A predicate family over (employee, slot, running state).

    ``codes`` lists every catalog code the rule may return; the registry checks
    them against the catalog when the rule set is built.
    """

    order: int = 100
    enabled: bool = True
    name: str = "rule"
    codes: tuple[str, ...] = ()

    def __init__(self, ctx: EvaluationContext, **settings: Any) -> None:
        self.ctx: EvaluationContext = ctx
        self._settings: dict[str, Any] = settings

    @abstractmethod
    def check(
        self, employee: Employee, slot: DutySlot, state: StateProto
    ) -> Iterable[str]:
        """Yield violated codes; nothing means the rule is satisfied."""

    # Helper for subclasses to read optional settings
    def setting(self, key: str, default: Any) -> Any:
        return self._settings.get(key, default)
