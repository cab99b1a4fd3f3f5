from __future__ import annotations

import logging
from typing import Mapping, Sequence, Tuple, Type

from dutyroster.catalog import RuleCatalog
from dutyroster.errors import SolverInternalError
from dutyroster.rules.areas import AreaPreferenceRule
from dutyroster.rules.availability import AvailabilityRule
from dutyroster.rules.base import EvaluationContext, Rule, RuleSpec
from dutyroster.rules.caps import WorkloadCapRule
from dutyroster.rules.consecutive_days import ConsecutiveDaysRule
from dutyroster.rules.continuity import ContinuityRule
from dutyroster.rules.qualification import OptionalSkillRule, QualificationRule
from dutyroster.rules.rest import OverlapRule, RestRule
from dutyroster.rules.status import StatusRule
from dutyroster.rules.workplace import WorkplaceRule

logger = logging.getLogger(__name__)

RuleTemplate = Tuple[Type[Rule], int, dict[str, float]]

STATUS_RULE_TEMPLATE: RuleTemplate = (StatusRule, 0, {})
AVAILABILITY_RULE_TEMPLATE: RuleTemplate = (AvailabilityRule, 10, {})
QUALIFICATION_RULE_TEMPLATE: RuleTemplate = (QualificationRule, 20, {})
WORKPLACE_RULE_TEMPLATE: RuleTemplate = (WorkplaceRule, 30, {})
CONSECUTIVE_DAYS_RULE_TEMPLATE: RuleTemplate = (ConsecutiveDaysRule, 40, {})
REST_RULE_TEMPLATE: RuleTemplate = (RestRule, 50, {})
OVERLAP_RULE_TEMPLATE: RuleTemplate = (OverlapRule, 55, {})
WORKLOAD_CAP_RULE_TEMPLATE: RuleTemplate = (WorkloadCapRule, 60, {})
AREA_PREFERENCE_RULE_TEMPLATE: RuleTemplate = (AreaPreferenceRule, 100, {})
OPTIONAL_SKILL_RULE_TEMPLATE: RuleTemplate = (OptionalSkillRule, 110, {})
CONTINUITY_RULE_TEMPLATE: RuleTemplate = (ContinuityRule, 120, {})

_DEFAULT_RULE_TEMPLATES: list[RuleTemplate] = [
    STATUS_RULE_TEMPLATE,
    AVAILABILITY_RULE_TEMPLATE,
    QUALIFICATION_RULE_TEMPLATE,
    WORKPLACE_RULE_TEMPLATE,
    CONSECUTIVE_DAYS_RULE_TEMPLATE,
    REST_RULE_TEMPLATE,
    OVERLAP_RULE_TEMPLATE,
    WORKLOAD_CAP_RULE_TEMPLATE,
    AREA_PREFERENCE_RULE_TEMPLATE,
    OPTIONAL_SKILL_RULE_TEMPLATE,
    CONTINUITY_RULE_TEMPLATE,
]


def default_rule_specs() -> list[RuleSpec]:
    """Return fresh copies of the default rule specifications."""
    specs: list[RuleSpec] = []
    logger.debug("using default rules")
    for cls, order, settings in _DEFAULT_RULE_TEMPLATES:
        specs.append(RuleSpec(cls=cls, order=order, settings=dict(settings)))
    return specs


def list_rule_names() -> list[str]:
    return [cls.name for cls, _, _ in _DEFAULT_RULE_TEMPLATES]


def normalize_rule_specs(
    rules: Sequence[RuleSpec | Type[Rule]] | None,
) -> list[RuleSpec]:
    """Turn user-provided rules into RuleSpec objects."""
    if rules is None:
        return default_rule_specs()

    normalized: list[RuleSpec] = []
    for item in rules:
        if isinstance(item, RuleSpec):
            normalized.append(item)
        elif isinstance(item, type) and issubclass(item, Rule):
            normalized.append(RuleSpec(cls=item))
        else:
            raise TypeError(
                "Rules must be RuleSpec instances or Rule subclasses; "
                f"got {type(item)!r}"
            )
    return normalized


def build_rules(
    ctx: EvaluationContext,
    specs: Sequence[RuleSpec],
    enabled_rules: Mapping[str, bool] | None = None,
) -> list[Rule]:
    """
    Instantiate rules in ``order``.

    ``enabled_rules`` maps rule names to on/off (names not listed stay on). Every
    code a rule declares must exist in the catalog.
    """
    catalog: RuleCatalog = ctx.catalog
    toggles = dict(enabled_rules or {})
    rules: list[Rule] = []
    for spec in specs:
        if not spec.enabled or not toggles.get(spec.cls.name, True):
            continue
        missing = [c for c in spec.cls.codes if c not in catalog]
        if missing:
            raise SolverInternalError(
                f"Rule {spec.cls.__name__} declares codes missing from catalog "
                f"{catalog.version}: {missing}"
            )
        rule = spec.cls(ctx, **spec.settings)
        if spec.order is not None:
            rule.order = spec.order
        rules.append(rule)
    rules.sort(key=lambda r: r.order)
    return rules


def active_rule_codes(
    catalog: RuleCatalog, enabled_rules: Mapping[str, bool] | None = None
) -> tuple[list[str], list[str]]:
    """
    Hard and soft catalog codes still in force under ``enabled_rules``.

    A code drops out only when every default rule declaring it is switched off.
    Codes no rule declares are raised by the solver itself and always stay.
    """
    toggles = dict(enabled_rules or {})
    on: set[str] = set()
    off: set[str] = set()
    for cls, _, _ in _DEFAULT_RULE_TEMPLATES:
        (on if toggles.get(cls.name, True) else off).update(cls.codes)
    dropped = off - on
    hard = [c for c in catalog.hard_codes() if c not in dropped]
    soft = [c for c in catalog.soft_codes() if c not in dropped]
    return hard, soft
