"""Tests for deterministic hashing utilities."""

from datetime import date
from decimal import Decimal
from uuid import UUID

import pytest
from hypothesis import given
from hypothesis import strategies as st

from statutory_kernel.utils.hashing import (
    canonicalize_json,
    hash_payload,
    hash_report_content,
)

START = date(2024, 1, 1)
END = date(2024, 12, 31)


class TestCanonicalJson:
    def test_keys_sorted_without_whitespace(self):
        assert canonicalize_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'

    def test_special_types(self):
        text = canonicalize_json(
            {
                "amount": Decimal("1.50"),
                "day": date(2024, 2, 29),
                "id": UUID("12345678-1234-5678-1234-567812345678"),
            }
        )
        assert text == (
            '{"amount":"1.5","day":"2024-02-29",'
            '"id":"12345678-1234-5678-1234-567812345678"}'
        )

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            canonicalize_json({"x": object()})


class TestHashPayload:
    def test_key_order_does_not_matter(self):
        assert hash_payload({"a": 1, "b": 2}) == hash_payload({"b": 2, "a": 1})

    def test_decimal_scale_does_not_matter(self):
        assert hash_payload({"x": Decimal("1.50")}) == hash_payload({"x": Decimal("1.5")})

    def test_hex_sha256(self):
        digest = hash_payload({"a": 1})
        assert len(digest) == 64
        int(digest, 16)


class TestReportContentHash:
    def test_deterministic(self):
        first = hash_report_content(START, END, '{"a":"1"}', "{}", "{}")
        second = hash_report_content(START, END, '{"a":"1"}', "{}", "{}")
        assert first == second

    def test_period_bounds_participate(self):
        base = hash_report_content(START, END, "{}", "{}", "{}")
        assert hash_report_content(START, date(2024, 12, 30), "{}", "{}", "{}") != base
        assert hash_report_content(date(2024, 1, 2), END, "{}", "{}", "{}") != base

    def test_parts_are_not_interchangeable(self):
        assert hash_report_content(START, END, "A", "B", "C") != hash_report_content(
            START, END, "B", "A", "C",
        )

    @given(
        payload=st.text(min_size=1, max_size=40),
        other=st.text(min_size=1, max_size=40),
    )
    def test_any_payload_change_changes_hash(self, payload, other):
        if payload == other:
            return
        assert hash_report_content(START, END, payload, "{}", "{}") != hash_report_content(
            START, END, other, "{}", "{}",
        )
