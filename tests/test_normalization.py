import pytest

from lead_intake.services.normalization import (
    normalize_email,
    normalize_phone,
    normalize_text,
    parse_flag,
)


def test_normalize_email():
    assert normalize_email("test@example.com") == "test@example.com"
    assert normalize_email("  Test@Example.COM  ") == "test@example.com"
    assert normalize_email("TEST@EXAMPLE.COM") == "test@example.com"

    assert normalize_email(None) == ""
    assert normalize_email("") == ""
    assert normalize_email("   ") == ""
    # No syntax check: comparison only needs a canonical form
    assert normalize_email("Not-An-Email") == "not-an-email"


@pytest.mark.parametrize("raw", ["  A@B.com ", "x@Y.ORG", "", "  ", "MiXeD Case"])
def test_normalize_email_idempotent(raw):
    once = normalize_email(raw)
    assert normalize_email(once) == once


def test_normalize_phone_digits_only():
    assert normalize_phone("(512) 555-0123") == "5125550123"
    assert normalize_phone("512-555-0123") == "5125550123"
    assert normalize_phone("512.555.0123") == "5125550123"
    assert normalize_phone("512 555 0123") == "5125550123"


def test_normalize_phone_keeps_last_ten_digits():
    assert normalize_phone("+1 (555) 123-4567") == "5551234567"
    assert normalize_phone("15551234567") == "5551234567"
    assert normalize_phone("+44 20 7946 0958 123") == "9460958123"


def test_normalize_phone_unbounded():
    assert normalize_phone("+1 (555) 123-4567", max_digits=0) == "15551234567"


def test_normalize_phone_empty():
    assert normalize_phone(None) == ""
    assert normalize_phone("") == ""
    assert normalize_phone("   ") == ""
    assert normalize_phone("abc") == ""


@pytest.mark.parametrize("raw", ["(555) 123-4567", "+1 555 123 4567 ext 89", "123", "", "n/a"])
def test_normalize_phone_idempotent_and_numeric(raw):
    once = normalize_phone(raw)
    assert once == "" or once.isdigit()
    assert len(once) <= 10
    assert normalize_phone(once) == once


def test_normalize_text():
    assert normalize_text(None) == ""
    assert normalize_text("  hi ") == "hi"
    assert normalize_text(78701) == "78701"


def test_parse_flag():
    assert parse_flag(True) is True
    assert parse_flag("on") is True
    assert parse_flag("Yes") is True
    assert parse_flag("1") is True
    assert parse_flag(False) is False
    assert parse_flag(None) is False
    assert parse_flag("") is False
    assert parse_flag("no") is False
