"""
Order and demand list state machines.

Every status change of an Order or a DemandList is validated here. The
check functions never raise; they return a TransitionResult that the
service layer turns into an HTTP error.

Order lifecycle:

    Pending ──► Processing ──► Partial ──► Fulfilled
       │            │             │
       └────────────┴─────────────┴──────► Cancelled

DemandList lifecycle:

    Draft ──► Submitted ──► Confirmed ──► Partial ──► Fulfilled
      │           │             │            │
      └───────────┴─────────────┴────────────┴──────► Cancelled
"""

from decimal import Decimal
from typing import Dict, Iterable, List, NamedTuple, Optional


# =============================================================================
# STATUS DEFINITIONS
# =============================================================================

class OrderStatus:
    PENDING = "Pending"
    PROCESSING = "Processing"
    PARTIAL = "Partial"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.PROCESSING, cls.PARTIAL, cls.FULFILLED, cls.CANCELLED]


class PaymentStatus:
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.PARTIAL, cls.PAID]


class DemandListStatus:
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    CONFIRMED = "Confirmed"
    PARTIAL = "Partial"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.DRAFT, cls.SUBMITTED, cls.CONFIRMED, cls.PARTIAL, cls.FULFILLED, cls.CANCELLED]


class DemandItemStatus:
    PENDING = "Pending"
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    PARTIAL = "Partial"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.PENDING, cls.AVAILABLE, cls.UNAVAILABLE, cls.PARTIAL]


# =============================================================================
# TRANSITION RULES
# =============================================================================

ORDER_TRANSITIONS: Dict[str, List[str]] = {
    OrderStatus.PENDING: [
        OrderStatus.PROCESSING,
        OrderStatus.PARTIAL,
        OrderStatus.FULFILLED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.PROCESSING: [
        OrderStatus.PARTIAL,
        OrderStatus.FULFILLED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.PARTIAL: [
        OrderStatus.FULFILLED,
        OrderStatus.CANCELLED,
    ],
    OrderStatus.FULFILLED: [],      # terminal
    OrderStatus.CANCELLED: [],      # terminal
}

DEMAND_LIST_TRANSITIONS: Dict[str, List[str]] = {
    DemandListStatus.DRAFT: [
        DemandListStatus.SUBMITTED,
        DemandListStatus.CANCELLED,
    ],
    DemandListStatus.SUBMITTED: [
        DemandListStatus.CONFIRMED,
        DemandListStatus.PARTIAL,
        DemandListStatus.FULFILLED,
        DemandListStatus.CANCELLED,
    ],
    DemandListStatus.CONFIRMED: [
        DemandListStatus.PARTIAL,
        DemandListStatus.FULFILLED,
        DemandListStatus.CANCELLED,
    ],
    DemandListStatus.PARTIAL: [
        DemandListStatus.FULFILLED,
        DemandListStatus.CANCELLED,
    ],
    DemandListStatus.FULFILLED: [],
    DemandListStatus.CANCELLED: [],
}


class TransitionResult(NamedTuple):
    allowed: bool
    reason: Optional[str] = None


ALLOWED = TransitionResult(True)


def _check(transitions: Dict[str, List[str]], kind: str, current: str, new: str) -> TransitionResult:
    if new not in transitions:
        return TransitionResult(False, f"Invalid {kind} status '{new}'")
    if current == new:
        return ALLOWED
    allowed = transitions.get(current, [])
    if new in allowed:
        return ALLOWED
    if not allowed:
        return TransitionResult(False, f"Cannot change a {current.lower()} {kind}")
    return TransitionResult(
        False,
        f"Cannot change {kind} from '{current}' to '{new}'. Allowed: {', '.join(allowed)}",
    )


# =============================================================================
# ORDER
# =============================================================================

def is_order_terminal(status: str) -> bool:
    return status in (OrderStatus.FULFILLED, OrderStatus.CANCELLED)


def check_order_transition(current: str, new: str, items: Iterable = ()) -> TransitionResult:
    """
    Validate an explicit order status change.

    Entering Fulfilled additionally requires every line to be delivered, so
    a Fulfilled order always has fulfilledQuantity >= quantity on each item.
    """
    result = _check(ORDER_TRANSITIONS, "order", current, new)
    if not result.allowed or current == new:
        # same status is a no-op
        return result
    if new == OrderStatus.FULFILLED and not all_items_fulfilled(items):
        return TransitionResult(False, "Cannot mark order fulfilled: not every item is fully fulfilled")
    return result


def can_update_order(status: str) -> TransitionResult:
    if is_order_terminal(status):
        return TransitionResult(False, f"Cannot update a {status.lower()} order")
    return ALLOWED


def can_delete_order(status: str) -> TransitionResult:
    if status != OrderStatus.PENDING:
        return TransitionResult(False, f"Cannot delete a {status.lower()} order")
    return ALLOWED


def can_fulfill_order(status: str) -> TransitionResult:
    if is_order_terminal(status):
        return TransitionResult(False, f"Cannot fulfill a {status.lower()} order")
    return ALLOWED


# =============================================================================
# DEMAND LIST
# =============================================================================

def is_demand_list_terminal(status: str) -> bool:
    return status in (DemandListStatus.FULFILLED, DemandListStatus.CANCELLED)


def check_demand_list_transition(current: str, new: str) -> TransitionResult:
    return _check(DEMAND_LIST_TRANSITIONS, "demand list", current, new)


def can_update_demand_list(status: str) -> TransitionResult:
    if is_demand_list_terminal(status):
        return TransitionResult(False, f"Cannot update a {status.lower()} demand list")
    return ALLOWED


def can_delete_demand_list(status: str) -> TransitionResult:
    if status != DemandListStatus.DRAFT:
        return TransitionResult(False, f"Cannot delete a {status.lower()} demand list")
    return ALLOWED


def can_fulfill_demand_list(status: str) -> TransitionResult:
    if status not in (DemandListStatus.SUBMITTED, DemandListStatus.CONFIRMED):
        return TransitionResult(False, f"Cannot fulfill a {status.lower()} demand list")
    return ALLOWED


# =============================================================================
# ROLLUPS
# =============================================================================

def demand_item_status(requested: int, available: int) -> str:
    if available >= requested:
        return DemandItemStatus.AVAILABLE
    if available > 0:
        return DemandItemStatus.PARTIAL
    return DemandItemStatus.UNAVAILABLE


def rollup_demand_list_status(items: Iterable, current: str) -> str:
    """Items need `.status` and `.available_quantity`."""
    items = list(items)
    if items and all(i.status == DemandItemStatus.AVAILABLE for i in items):
        return DemandListStatus.FULFILLED
    if any((i.available_quantity or 0) > 0 for i in items):
        return DemandListStatus.PARTIAL
    return current


def all_items_fulfilled(items: Iterable) -> bool:
    """Items need `.quantity` and `.fulfilled_quantity`."""
    items = list(items)
    return bool(items) and all((i.fulfilled_quantity or 0) >= i.quantity for i in items)


def rollup_order_status(items: Iterable, current: str) -> str:
    items = list(items)
    if all_items_fulfilled(items):
        return OrderStatus.FULFILLED
    if any((i.fulfilled_quantity or 0) > 0 for i in items):
        return OrderStatus.PARTIAL
    return current


def payment_status(total_paid: Decimal, total_amount: Decimal) -> str:
    return PaymentStatus.PAID if total_paid >= total_amount else PaymentStatus.PARTIAL
