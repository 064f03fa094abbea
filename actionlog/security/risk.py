"""Risk assessment — classify an admin action as low/medium/high/critical.

Pure and table-driven. Rules are evaluated top to bottom and the first match
wins; downstream statistics depend on this exact order and these thresholds.

Usage:
    from actionlog.security.risk import assess_risk

    assess_risk(ActionType.DELETE, "user", 1)  # RiskLevel.HIGH
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from actionlog.models.enums import ActionType, ResourceType, RiskLevel

CRITICAL_AFFECTED_THRESHOLD = 10
MEDIUM_AFFECTED_THRESHOLD = 5


@dataclass(frozen=True)
class RiskRule:
    """One row of the rule table."""

    level: RiskLevel
    applies: Callable[[ActionType, str, int], bool]
    description: str


RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule(
        RiskLevel.CRITICAL,
        lambda action, _resource, affected: (
            action == ActionType.BULK_DELETE or affected > CRITICAL_AFFECTED_THRESHOLD
        ),
        "bulk delete, or more than 10 users affected",
    ),
    RiskRule(
        RiskLevel.HIGH,
        lambda action, resource, _affected: (
            (action == ActionType.DELETE and resource == ResourceType.USER.value)
            or (action == ActionType.UPDATE and resource == ResourceType.ROLE.value)
        ),
        "user deletion or role change",
    ),
    RiskRule(
        RiskLevel.MEDIUM,
        lambda action, _resource, affected: (
            action == ActionType.BULK_UPDATE or affected > MEDIUM_AFFECTED_THRESHOLD
        ),
        "bulk update, or more than 5 users affected",
    ),
)


def assess_risk(
    action_type: ActionType | str,
    resource_type: ResourceType | str | None,
    affected_count: int = 0,
) -> RiskLevel:
    """Return the risk level of an action. Same input, same output."""
    action = ActionType(action_type.upper() if isinstance(action_type, str) else action_type)
    if isinstance(resource_type, ResourceType):
        resource = resource_type.value
    else:
        resource = (resource_type or "").lower()
    affected = affected_count or 0

    for rule in RISK_RULES:
        if rule.applies(action, resource, affected):
            return rule.level
    return RiskLevel.LOW
