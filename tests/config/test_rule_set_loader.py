"""
Rule-set loader tests.

Covers YAML loading, required-key checks, checksum determinism and the
bundled Israeli rule set.
"""

from datetime import date

import pytest
import yaml

from statutory_config import (
    DEFAULT_RULE_SET,
    compute_checksum,
    load_bundled_rule_set,
    load_rule_set,
)
from statutory_config.loader import parse_date, parse_rule_set

MINIMAL = {
    "name": "minimal",
    "jurisdiction": "XX",
    "classification": {
        "defaults": {
            "revenue": "other_revenue",
            "expense": "administrative_expense",
            "asset": "other_receivables",
            "liability": "other_payables",
            "equity": "share_capital",
        }
    },
}


class TestParseRuleSet:
    def test_minimal_document(self):
        doc = parse_rule_set(MINIMAL)

        assert doc.name == "minimal"
        assert doc.jurisdiction == "XX"
        assert doc.version == 1
        assert doc.effective_from is None
        assert doc.field_codes == {}
        assert doc.adjustments == ()
        assert len(doc.checksum) == 64

    @pytest.mark.parametrize("key", ["name", "jurisdiction", "classification"])
    def test_missing_required_key(self, key):
        data = {k: v for k, v in MINIMAL.items() if k != key}
        with pytest.raises(KeyError, match=key):
            parse_rule_set(data)

    def test_field_codes_coerced_to_strings(self):
        doc = parse_rule_set({**MINIMAL, "field_codes": {"total_revenue": 1000}})
        assert doc.field_codes == {"total_revenue": "1000"}

    def test_effective_from_parsed(self):
        doc = parse_rule_set({**MINIMAL, "effective_from": "2024-01-01"})
        assert doc.effective_from == date(2024, 1, 1)

    def test_bad_date_rejected(self):
        with pytest.raises(ValueError):
            parse_date(20240101)


class TestChecksum:
    def test_independent_of_key_order(self):
        reordered = dict(reversed(list(MINIMAL.items())))
        assert compute_checksum(reordered) == compute_checksum(MINIMAL)

    def test_changes_with_content(self):
        changed = {**MINIMAL, "jurisdiction": "YY"}
        assert compute_checksum(changed) != compute_checksum(MINIMAL)


class TestLoadFromFile:
    def test_round_trip_through_yaml_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump(MINIMAL), encoding="utf-8")

        doc = load_rule_set(path)

        assert doc.name == "minimal"
        assert doc.source_path == str(path)
        assert doc.checksum == compute_checksum(MINIMAL)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rule_set(tmp_path / "absent.yaml")

    def test_unknown_bundled_name(self):
        with pytest.raises(FileNotFoundError):
            load_bundled_rule_set("no_such_rule_set")


class TestBundledIsraeliRuleSet:
    def test_loads(self):
        doc = load_bundled_rule_set(DEFAULT_RULE_SET)

        assert doc.name == "il_form6111"
        assert doc.jurisdiction == "IL"
        assert doc.adjustments == ()
        assert set(doc.classification) == {"prefix", "keyword", "defaults"}

    def test_checksum_stable_across_loads(self):
        assert (
            load_bundled_rule_set(DEFAULT_RULE_SET).checksum
            == load_bundled_rule_set(DEFAULT_RULE_SET).checksum
        )

    def test_form_totals_have_field_codes(self):
        codes = load_bundled_rule_set(DEFAULT_RULE_SET).field_codes
        assert codes["total_revenue"] == "1000"
        assert codes["total_profit_loss"] == "6666"
        assert codes["total_assets"] == "8888"
        assert codes["total_liabilities_and_equity"] == "9999"
