"""
Form 6111 Configuration Schema.

Defines the classification rule set, tax adjustment rules, validation
tolerances and generation options.  The jurisdiction tables themselves
live in YAML (``statutory_config/rule_sets``); this dataclass holds the
parsed form plus the knobs that are not jurisdiction data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Self

from statutory_config import load_bundled_rule_set, load_rule_set
from statutory_kernel.db.types import validate_currency_code
from statutory_kernel.logging_config import get_logger
from statutory_modules.form6111.adjustments import AdjustmentRule, build_adjustment_rules
from statutory_modules.form6111.classifier import ClassificationRuleSet, default_rule_set

logger = get_logger("modules.form6111.config")


@dataclass
class Form6111Config:
    """
    Configuration schema for the Form 6111 module.

    ``adjustment_rules`` defaults to the rules declared in the rule set's
    ``adjustments`` section (none in the bundled Israeli set).
    """

    # Classification rules and field codes
    rule_set: ClassificationRuleSet = field(default_factory=default_rule_set)

    # Part B rules, evaluated in order; None -> built from the rule set
    adjustment_rules: tuple[AdjustmentRule, ...] | None = None

    # Reporting currency
    currency: str = "ILS"

    # Balance-check and recomputation tolerance
    epsilon: Decimal = Decimal("0.01")

    # Quantization of every reported figure
    display_precision: int = 2

    # Balance fetch fan-out
    max_workers: int = 4

    # Accounts whose as-of balances are opening/closing inventory.
    # Empty -> every asset account classified as inventory.
    inventory_account_codes: tuple[str, ...] = ()

    # Add cumulative revenue - expense to retained earnings
    include_unclosed_earnings: bool = True

    # Accepted tax years
    min_tax_year: int = 2000
    max_tax_year: int = 2100

    # Export header
    form_name: str = "Form6111"
    reporting_method: str = "Accrual"
    accounting_method: str = "Double"

    def __post_init__(self):
        self.currency = validate_currency_code(self.currency)
        if not isinstance(self.epsilon, Decimal):
            self.epsilon = Decimal(str(self.epsilon))
        if self.epsilon < 0:
            raise ValueError("epsilon cannot be negative")
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if self.min_tax_year > self.max_tax_year:
            raise ValueError("min_tax_year cannot exceed max_tax_year")
        self.inventory_account_codes = tuple(self.inventory_account_codes)
        if self.adjustment_rules is None:
            self.adjustment_rules = build_adjustment_rules(
                self.rule_set.adjustment_definitions,
            )
        else:
            self.adjustment_rules = tuple(self.adjustment_rules)

    @property
    def quantum(self) -> Decimal:
        """Smallest reported unit, e.g. ``Decimal("0.01")``."""
        return Decimal(1).scaleb(-self.display_precision)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("form6111_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Create config from dictionary.

        ``rule_set`` may be a path to a rule-set YAML file or the name of a
        bundled rule set; ``adjustment_rules`` a list of rule definitions.
        """
        data = dict(data)
        rule_set = data.get("rule_set")
        if isinstance(rule_set, str):
            document = (
                load_rule_set(rule_set)
                if rule_set.endswith((".yaml", ".yml"))
                else load_bundled_rule_set(rule_set)
            )
            data["rule_set"] = ClassificationRuleSet.from_document(document)
        if isinstance(data.get("adjustment_rules"), (list, tuple)):
            data["adjustment_rules"] = build_adjustment_rules(data["adjustment_rules"])
        if "epsilon" in data:
            data["epsilon"] = Decimal(str(data["epsilon"]))
        if "inventory_account_codes" in data:
            data["inventory_account_codes"] = tuple(
                str(c) for c in data["inventory_account_codes"]
            )
        logger.info(
            "form6111_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
