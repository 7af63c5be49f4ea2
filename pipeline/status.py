"""SourceItem lifecycle states and the transitions allowed between them."""
from enum import Enum
from typing import Dict, FrozenSet


class SourceItemStatus(str, Enum):
    """SourceItem status enumeration."""
    FETCHED = "fetched"
    PROCESSING = "processing"
    PROCESSED = "processed"
    SKIPPED = "skipped"
    ERROR = "error"


class IllegalTransition(ValueError):
    """Raised when a status change is not in the transition table."""

    def __init__(self, current: SourceItemStatus, target: SourceItemStatus):
        super().__init__(f"Illegal status transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


# skipped/error items may be re-triggered by an operator
TRANSITIONS: Dict[SourceItemStatus, FrozenSet[SourceItemStatus]] = {
    SourceItemStatus.FETCHED: frozenset({SourceItemStatus.PROCESSING}),
    SourceItemStatus.PROCESSING: frozenset({
        SourceItemStatus.PROCESSED,
        SourceItemStatus.SKIPPED,
        SourceItemStatus.ERROR,
    }),
    SourceItemStatus.PROCESSED: frozenset(),
    SourceItemStatus.SKIPPED: frozenset({SourceItemStatus.PROCESSING}),
    SourceItemStatus.ERROR: frozenset({SourceItemStatus.PROCESSING}),
}

TERMINAL_STATUSES = frozenset({
    SourceItemStatus.PROCESSED,
    SourceItemStatus.SKIPPED,
    SourceItemStatus.ERROR,
})

CLAIMABLE_STATUSES = frozenset(
    status for status, targets in TRANSITIONS.items()
    if SourceItemStatus.PROCESSING in targets
)


def can_transition(current: SourceItemStatus, target: SourceItemStatus) -> bool:
    """Check whether current -> target is allowed."""
    return target in TRANSITIONS[SourceItemStatus(current)]


def transition(current: SourceItemStatus, target: SourceItemStatus) -> SourceItemStatus:
    """Return the target status, raising IllegalTransition if it is not allowed."""
    current = SourceItemStatus(current)
    target = SourceItemStatus(target)
    if not can_transition(current, target):
        raise IllegalTransition(current, target)
    return target
