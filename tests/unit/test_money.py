"""Unit tests for Rupiah parsing and formatting"""

from rentdesk.domain.money import format_idr, num, parse_number_loose


def test_num_coerces_backend_numerics():
    """Test numbers and numeric strings from the backend"""
    assert num(1500000) == 1500000.0
    assert num("1500000.50") == 1500000.5
    assert num(None) == 0.0
    assert num("abc") == 0.0
    assert num(True) == 0.0
    assert num(float("nan")) == 0.0


def test_parse_number_loose_indonesian_format():
    """Test dots are thousands separators and the comma is the decimal mark"""
    assert parse_number_loose("1.500.000") == 1500000.0
    assert parse_number_loose("12,5") == 12.5
    assert parse_number_loose(" 250000 ") == 250000.0
    assert parse_number_loose(75000) == 75000.0


def test_parse_number_loose_invalid():
    """Test blank and non-numeric input"""
    assert parse_number_loose("") is None
    assert parse_number_loose("   ") is None
    assert parse_number_loose(None) is None
    assert parse_number_loose("dua ribu") is None
    assert parse_number_loose(float("inf")) is None


def test_format_idr():
    """Test Rupiah formatting without fraction digits"""
    assert format_idr(1500000) == "Rp 1.500.000"
    assert format_idr(0) == "Rp 0"
    assert format_idr(999.6) == "Rp 1.000"
    assert format_idr(-25000) == "-Rp 25.000"
    assert format_idr(None) == "Rp 0"
