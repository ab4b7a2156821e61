"""Unit tests for owner and repair-fund summaries"""

from rentdesk.domain.reports import ALL_OWNERS, filter_owners, fund_summary, merge_owner_summary, pick_number

OWNERS = ["Rahman", "Dival", "Fadel"]


def test_merge_owner_summary_keeps_configured_order():
    """Test one row per configured owner with zeros for missing data"""
    rows = merge_owner_summary(
        OWNERS,
        [{"owner": "Dival", "rent_bill": "1200000", "rent_paid": 0, "rent_due": 1200000}],
        [{"owner": "Rahman", "water_bill": 80000, "water_paid": 80000, "water_due": 0}],
    )

    assert [r.owner for r in rows] == OWNERS
    assert rows[1].rent_due == 1200000
    assert rows[0].water_paid == 80000
    assert rows[2].rent_bill == 0
    assert rows[2].water_bill == 0


def test_merge_owner_summary_ignores_unconfigured_owners():
    """Test owners outside the configured list are not reported"""
    rows = merge_owner_summary(OWNERS, [{"owner": "Stranger", "rent_bill": 1}], None)
    assert sum(r.rent_bill for r in rows) == 0


def test_filter_owners():
    """Test the all-owners choice keeps every row"""
    rows = merge_owner_summary(OWNERS, [], [])
    assert filter_owners(rows, ALL_OWNERS) == rows
    assert filter_owners(rows, None) == rows
    assert [r.owner for r in filter_owners(rows, "Fadel")] == ["Fadel"]


def test_pick_number_shapes():
    """Test scalars, objects and lists from procedures"""
    assert pick_number(None, "contrib") == 0
    assert pick_number("150000", "contrib") == 150000
    assert pick_number({"contrib": 150000}, "contrib") == 150000
    assert pick_number({"contrib": 150000}) == 0
    assert pick_number([{"contrib": 100000}, {"contrib": "50000"}], "contrib") == 150000
    assert pick_number([1, 2, 3]) == 6


def test_fund_summary_balance():
    """Test the repair fund balance is contributions minus spending"""
    fund = fund_summary([{"contrib": 150000}], {"spent": 200000})

    assert fund.contrib == 150000
    assert fund.spent == 200000
    assert fund.balance == -50000
