"""Roster skeleton: the period's duty slots generated from the service-role catalog."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional, Sequence

from dutyroster.config import Config, cfg as default_cfg
from dutyroster.input_data import Period
from dutyroster.staff import DutySlot


@dataclass(frozen=True, slots=True)
class ServiceRole:
    id: str
    label: str
    start_time: time
    end_time: time
    mandatory: bool = True
    area: Optional[str] = None
    required_groups: frozenset[str] = frozenset()
    required_skills: frozenset[str] = frozenset()
    optional_skills: frozenset[str] = frozenset()
    continuity: bool = False


SERVICE_ROLES: tuple[ServiceRole, ...] = (
    ServiceRole(
        "kreiszimmer",
        "Delivery room (resident)",
        time(7, 30),
        time(15, 30),
        area="delivery",
        continuity=True,
    ),
    ServiceRole(
        "gyn", "Gynaecology (senior)", time(7, 30), time(15, 30), area="gynaecology"
    ),
    ServiceRole(
        "turnus",
        "Rotation (resident/trainee)",
        time(7, 30),
        time(15, 30),
        mandatory=False,
        area="ward",
    ),
    ServiceRole(
        "overduty",
        "Senior on-call",
        time(18, 0),
        time(7, 0),
        mandatory=False,
    ),
)

# roles generated by default; overduty is planned separately
DEFAULT_SKELETON_ROLES: tuple[str, ...] = ("kreiszimmer", "gyn", "turnus")


def slot_id_for(period: Period, day: int, role_id: str) -> str:
    return f"{period.year}-{period.month:02d}-{day:02d}-{role_id}"


def build_skeleton(
    period: Period,
    roles: Sequence[ServiceRole] | None = None,
    include: Sequence[str] | None = DEFAULT_SKELETON_ROLES,
    cfg: Config | None = None,
) -> list[DutySlot]:
    """
    One slot per (day, role). A role's vacancy blocks publication when its id is in
    ``cfg.REQUIRED_SERVICE_ROLES``.
    """
    C = cfg or default_cfg
    catalog = list(roles) if roles is not None else list(SERVICE_ROLES)
    if include is not None:
        wanted = set(include)
        catalog = [r for r in catalog if r.id in wanted]

    slots: list[DutySlot] = []
    for day in period.days():
        for role in catalog:
            mandatory = role.mandatory or role.id in C.REQUIRED_SERVICE_ROLES
            slots.append(
                DutySlot(
                    id=slot_id_for(period, day.day, role.id),
                    date=day,
                    service_type=role.id,
                    mandatory=mandatory,
                    area=role.area,
                    blocks_publish=mandatory and role.id in C.REQUIRED_SERVICE_ROLES,
                    start_time=role.start_time,
                    end_time=role.end_time,
                    required_groups=role.required_groups,
                    required_skills=role.required_skills,
                    optional_skills=role.optional_skills,
                    continuity=role.continuity,
                )
            )
    return slots
