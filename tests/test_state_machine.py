from decimal import Decimal
from types import SimpleNamespace as NS

import pytest

from wholesale.domain.state_machine import (
    OrderStatus, DemandListStatus, DemandItemStatus, PaymentStatus,
    check_order_transition, check_demand_list_transition,
    can_delete_order, can_update_order, can_fulfill_demand_list, can_delete_demand_list,
    demand_item_status, rollup_demand_list_status, rollup_order_status, payment_status,
)


def line(quantity, fulfilled):
    return NS(quantity=quantity, fulfilled_quantity=fulfilled)


@pytest.mark.parametrize("current,new", [
    ("Pending", "Processing"),
    ("Pending", "Cancelled"),
    ("Processing", "Partial"),
    ("Partial", "Cancelled"),
])
def test_order_allowed_transitions(current, new):
    assert check_order_transition(current, new, [line(1, 1)]).allowed


@pytest.mark.parametrize("current,new", [
    ("Fulfilled", "Pending"),
    ("Cancelled", "Processing"),
    ("Partial", "Processing"),
    ("Processing", "Pending"),
])
def test_order_rejected_transitions(current, new):
    result = check_order_transition(current, new, [line(1, 1)])
    assert not result.allowed
    assert result.reason


def test_order_unknown_status_rejected():
    result = check_order_transition("Pending", "Shipped")
    assert not result.allowed
    assert "Shipped" in result.reason


def test_order_same_status_is_noop():
    assert check_order_transition("Cancelled", "Cancelled").allowed
    assert check_order_transition("Partial", "Partial").allowed


def test_fulfilled_requires_every_line_complete():
    assert not check_order_transition("Processing", "Fulfilled", [line(5, 5), line(3, 2)]).allowed
    assert check_order_transition("Processing", "Fulfilled", [line(5, 5), line(3, 3)]).allowed


def test_order_edit_and_delete_guards():
    assert can_delete_order(OrderStatus.PENDING).allowed
    assert not can_delete_order(OrderStatus.PROCESSING).allowed
    assert can_update_order(OrderStatus.PARTIAL).allowed
    assert not can_update_order(OrderStatus.FULFILLED).allowed


def test_demand_list_transitions():
    assert check_demand_list_transition("Draft", "Submitted").allowed
    assert check_demand_list_transition("Submitted", "Confirmed").allowed
    assert not check_demand_list_transition("Draft", "Confirmed").allowed
    assert not check_demand_list_transition("Fulfilled", "Cancelled").allowed
    assert "Cannot change a fulfilled demand list" == check_demand_list_transition("Fulfilled", "Draft").reason


def test_demand_list_fulfill_and_delete_guards():
    assert can_fulfill_demand_list(DemandListStatus.SUBMITTED).allowed
    assert can_fulfill_demand_list(DemandListStatus.CONFIRMED).allowed
    assert not can_fulfill_demand_list(DemandListStatus.DRAFT).allowed
    assert not can_fulfill_demand_list(DemandListStatus.PARTIAL).allowed
    assert can_delete_demand_list(DemandListStatus.DRAFT).allowed
    assert not can_delete_demand_list(DemandListStatus.SUBMITTED).allowed


@pytest.mark.parametrize("available,expected", [
    (10, DemandItemStatus.AVAILABLE),
    (12, DemandItemStatus.AVAILABLE),
    (4, DemandItemStatus.PARTIAL),
    (0, DemandItemStatus.UNAVAILABLE),
])
def test_demand_item_status(available, expected):
    assert demand_item_status(10, available) == expected


def test_demand_list_rollup():
    full = NS(status=DemandItemStatus.AVAILABLE, available_quantity=10)
    part = NS(status=DemandItemStatus.PARTIAL, available_quantity=4)
    none = NS(status=DemandItemStatus.UNAVAILABLE, available_quantity=0)
    assert rollup_demand_list_status([full, full], "Submitted") == DemandListStatus.FULFILLED
    assert rollup_demand_list_status([full, none], "Submitted") == DemandListStatus.PARTIAL
    assert rollup_demand_list_status([part], "Confirmed") == DemandListStatus.PARTIAL
    assert rollup_demand_list_status([none, none], "Confirmed") == "Confirmed"


def test_order_rollup():
    assert rollup_order_status([line(5, 5)], "Pending") == OrderStatus.FULFILLED
    assert rollup_order_status([line(5, 3)], "Pending") == OrderStatus.PARTIAL
    assert rollup_order_status([line(5, 0)], "Processing") == "Processing"


def test_payment_status():
    assert payment_status(Decimal("50"), Decimal("110")) == PaymentStatus.PARTIAL
    assert payment_status(Decimal("110"), Decimal("110")) == PaymentStatus.PAID
    assert payment_status(Decimal("120"), Decimal("110")) == PaymentStatus.PAID
