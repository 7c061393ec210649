"""
Jurisdiction rule-set configuration (``statutory_config``).

Rule sets are YAML documents shipped under ``rule_sets/`` or supplied by
the caller.  They are data, not code: swapping a chart of accounts or a
jurisdiction means editing or replacing a YAML file.
"""

from statutory_config.loader import (
    RuleSetDocument,
    compute_checksum,
    load_bundled_rule_set,
    load_rule_set,
)

DEFAULT_RULE_SET = "il_form6111"

__all__ = [
    "DEFAULT_RULE_SET",
    "RuleSetDocument",
    "compute_checksum",
    "load_bundled_rule_set",
    "load_rule_set",
]
