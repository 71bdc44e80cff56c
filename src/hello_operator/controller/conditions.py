"""Status condition bookkeeping.

Conditions are kept as an immutable, insertion-ordered tuple that holds at
most one entry per type. ``lastTransitionTime`` only moves when the status
of a condition flips; reason, message and observed generation are refreshed
on every call.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from hello_operator.crd.base import CRDCondition


def utcnow() -> datetime:
    # Kubernetes timestamps carry second precision.
    return datetime.now(timezone.utc).replace(microsecond=0)


def _value(item) -> str:
    return getattr(item, "value", item)


def find_condition(
    conditions: Sequence[CRDCondition], condition_type
) -> Optional[CRDCondition]:
    """Return the condition of the given type, or None."""
    wanted = _value(condition_type)
    for condition in conditions:
        if condition.type == wanted:
            return condition
    return None


def is_condition_true(conditions: Sequence[CRDCondition], condition_type) -> bool:
    condition = find_condition(conditions, condition_type)
    return condition is not None and condition.status == "True"


def set_condition(
    conditions: Sequence[CRDCondition],
    condition_type,
    status,
    reason: str,
    message: str,
    observed_generation: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[CRDCondition, ...]:
    """Merge a condition into ``conditions`` and return the new tuple.

    Args:
        conditions: Current conditions, left untouched
        condition_type: Condition type (e.g. ``ConditionType.READY``)
        status: ``True``, ``False`` or ``Unknown``
        reason: CamelCase machine readable reason
        message: Human readable message
        observed_generation: Generation of the object this condition reflects
        now: Transition timestamp for new or flipped conditions
    """
    type_value = _value(condition_type)
    status_value = _value(status)
    timestamp = now or utcnow()

    merged = []
    found = False
    for existing in conditions:
        if existing.type != type_value:
            merged.append(existing)
            continue

        found = True
        if existing.status != status_value:
            merged.append(
                CRDCondition(
                    type=type_value,
                    status=status_value,
                    reason=reason,
                    message=message,
                    lastTransitionTime=timestamp,
                    observedGeneration=observed_generation,
                )
            )
        else:
            merged.append(
                existing.model_copy(
                    update={
                        "reason": reason,
                        "message": message,
                        "observedGeneration": observed_generation,
                    }
                )
            )

    if not found:
        merged.append(
            CRDCondition(
                type=type_value,
                status=status_value,
                reason=reason,
                message=message,
                lastTransitionTime=timestamp,
                observedGeneration=observed_generation,
            )
        )

    return tuple(merged)
