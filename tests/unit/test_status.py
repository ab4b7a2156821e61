"""Unit tests for rent and water status aggregation"""

import pytest

from rentdesk.domain.models import House, PeriodStatus
from rentdesk.domain.status import (
    action_label,
    action_name,
    build_status,
    default_amount,
    parse_house,
    parse_status,
)


@pytest.fixture
def houses():
    return [
        House(id="h2", code="B2", owner="Dival"),
        House(id="h1", code="A1", owner="Rahman"),
        House(id="h3", code="KAS", owner="Fadel", is_repair_fund=True),
    ]


@pytest.fixture
def board(houses):
    rent = [
        PeriodStatus(house_id="h1", period="2025-02-01", bill=1500000, paid=1500000, due=0),
        PeriodStatus(house_id="h1", period="2025-03-01", bill=1500000, paid=500000, due=1000000),
        PeriodStatus(house_id="h3", period="2025-03-01", bill=100000, paid=0, due=100000),
        PeriodStatus(house_id="gone", period="2025-03-01", bill=999, paid=0, due=999),
    ]
    water = [PeriodStatus(house_id="h2", period="2025-03-01", bill=80000, paid=30000, due=50000)]
    return build_status(houses, rent, water)


def test_build_status_sorts_and_sums(board):
    """Test rows are sorted by code and amounts summed across periods"""
    assert [r.code for r in board.rows] == ["A1", "B2", "KAS"]
    a1 = board.row("h1")
    assert a1.rent_bill == 3000000
    assert a1.rent_due == 1000000
    assert board.row("h2").water_due == 50000


def test_build_status_ignores_unknown_houses(board):
    """Test status rows for houses not in the list are dropped"""
    assert board.row("gone") is None
    assert "gone" not in board.maps["rent"]


def test_houses_without_status_get_zero_rows(board):
    """Test every house gets a row"""
    b2 = board.row("h2")
    assert (b2.rent_bill, b2.rent_paid, b2.rent_due) == (0, 0, 0)


def test_totals_exclude_repair_fund(board):
    """Test repair-fund houses are left out of totals"""
    totals = board.totals("rent")
    assert totals.bill == 3000000
    assert totals.due == 1000000


def test_period_lookup(board):
    """Test per-period status and due lookups"""
    assert board.due_for("h1", "rent", "2025-03-01") == 1000000
    assert board.due_for("h1", "rent", "2024-12-01") == 0
    assert board.status_for("h2", "rent", "2025-03-01") is None
    assert board.periods_for("h1", "rent") == ["2025-02-01", "2025-03-01"]


def test_apply_payment_projects_without_mutating(board):
    """Test a projected payment leaves the input board unchanged"""
    projected = board.apply_payment("h1", "rent", "2025-03-01", 400000)

    assert projected.row("h1").rent_paid == 2400000
    assert projected.row("h1").rent_due == 600000
    assert projected.status_for("h1", "rent", "2025-03-01").due == 600000
    assert board.row("h1").rent_due == 1000000
    assert board.status_for("h1", "rent", "2025-03-01").due == 1000000


def test_apply_payment_floors_due_at_zero(board):
    """Test overpayment never produces a negative due"""
    projected = board.apply_payment("h2", "water", "2025-03-01", 90000)

    assert projected.row("h2").water_due == 0
    assert projected.status_for("h2", "water", "2025-03-01").paid == 120000


def test_apply_payment_for_period_without_status(board):
    """Test projecting onto a period the board has no status for"""
    projected = board.apply_payment("h2", "rent", "2025-03-01", 1000)

    status = projected.status_for("h2", "rent", "2025-03-01")
    assert (status.bill, status.paid, status.due) == (0, 1000, 0)


def test_parse_rows():
    """Test backend rows become domain objects"""
    house = parse_house({"id": "h1", "code": "A1", "owner": "Rahman", "is_repair_fund": None})
    assert house.is_repair_fund is False

    status = parse_status(
        {"house_id": "h1", "period": "2025-03-01", "water_bill": "80000", "water_paid": None, "water_due": 80000},
        "water",
    )
    assert (status.bill, status.paid, status.due) == (80000, 0, 80000)


def test_payment_actions():
    """Test default amounts, audit actions and labels"""
    assert default_amount(True, 1000000) == "1000000"
    assert default_amount(True, 0) == ""
    assert default_amount(False, 1000000) == ""
    assert action_name("rent", True) == "rent_full"
    assert action_name("water", False) == "water_partial"
    assert action_label("rent", True) == "Sewa Lunas"
    assert action_label("water", False) == "Bayar Air Sebagian"
