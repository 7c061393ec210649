"""
Account Classifier (``statutory_modules.form6111.classifier``).

Responsibility
--------------
Map a chart-of-accounts entry to exactly one ``StatutoryBucket`` using an
ordered, externally configured rule table.  Pure: ZERO I/O once the rule
set has been built.

Rules are a tagged variant:

* ``PrefixRule``      -- account code starts with ``prefix``
* ``KeywordRule``     -- account name contains any keyword (case-insensitive)
* ``TypeDefaultRule`` -- fallback bucket for an account type

Precedence is prefix tier, then keyword tier, then type default.  Within a
tier the first matching rule in table order wins.  A prefix or keyword rule
only applies to accounts of the type that owns its bucket.

Invariants enforced
-------------------
* Classification is total: the rule set must define a default for every
  ``AccountType`` (checked at construction).
* Classification is deterministic: same account, same rule set, same bucket.
* A default's bucket must belong to its account type.

Failure modes
-------------
* ``ClassificationRuleError`` for unknown buckets/types, empty prefixes or
  keywords, incompatible or missing defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from statutory_config import DEFAULT_RULE_SET, RuleSetDocument, load_bundled_rule_set
from statutory_kernel.exceptions import ClassificationRuleError
from statutory_kernel.logging_config import get_logger
from statutory_kernel.models.account import AccountType
from statutory_kernel.selectors.ledger_selector import AccountInfo
from statutory_modules.form6111.models import StatutoryBucket

logger = get_logger("modules.form6111.classifier")


# =========================================================================
# Rule variants
# =========================================================================


@dataclass(frozen=True)
class PrefixRule:
    """Account code starts with ``prefix``."""

    prefix: str
    bucket: StatutoryBucket

    def matches(self, account: AccountInfo) -> bool:
        return account.code.startswith(self.prefix)


@dataclass(frozen=True)
class KeywordRule:
    """Account name contains any of ``keywords`` (case-insensitive)."""

    keywords: tuple[str, ...]
    bucket: StatutoryBucket

    def matches(self, account: AccountInfo) -> bool:
        name = account.name.casefold()
        return any(k.casefold() in name for k in self.keywords)


@dataclass(frozen=True)
class TypeDefaultRule:
    """Fallback bucket for every account of ``account_type``."""

    account_type: AccountType
    bucket: StatutoryBucket


ClassificationRule = PrefixRule | KeywordRule | TypeDefaultRule


# =========================================================================
# Rule set
# =========================================================================


@dataclass(frozen=True)
class ClassificationRuleSet:
    """
    An ordered, validated classification table for one jurisdiction.

    ``field_codes`` maps bucket and derived-total names to form field
    numbers; it is carried here because it is jurisdiction data from the
    same document.
    """

    name: str
    prefix_rules: tuple[PrefixRule, ...]
    keyword_rules: tuple[KeywordRule, ...]
    defaults: tuple[TypeDefaultRule, ...]
    field_codes: dict[str, str] = field(default_factory=dict, compare=False)
    jurisdiction: str = ""
    checksum: str = ""
    adjustment_definitions: tuple[dict[str, Any], ...] = field(default=(), compare=False)

    def __post_init__(self):
        for rule in self.prefix_rules:
            if not rule.prefix.strip():
                raise ClassificationRuleError(self.name, "prefix rules need a non-empty prefix")
        for rule in self.keyword_rules:
            if not rule.keywords or any(not k.strip() for k in rule.keywords):
                raise ClassificationRuleError(
                    self.name, f"keyword rule for {rule.bucket.value} has an empty keyword",
                )

        seen: set[AccountType] = set()
        for rule in self.defaults:
            if rule.account_type in seen:
                raise ClassificationRuleError(
                    self.name, f"duplicate default for {rule.account_type.value}",
                )
            if rule.bucket.account_type != rule.account_type:
                raise ClassificationRuleError(
                    self.name,
                    f"default bucket {rule.bucket.value} is not a "
                    f"{rule.account_type.value} bucket",
                )
            seen.add(rule.account_type)

        missing = [t.value for t in AccountType if t not in seen]
        if missing:
            raise ClassificationRuleError(
                self.name, f"no default bucket for account types: {', '.join(missing)}",
            )

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        """All rules in evaluation order."""
        return (*self.prefix_rules, *self.keyword_rules, *self.defaults)

    def default_for(self, account_type: AccountType) -> StatutoryBucket:
        for rule in self.defaults:
            if rule.account_type == account_type:
                return rule.bucket
        raise ClassificationRuleError(self.name, f"no default for {account_type.value}")

    def field_code(self, key: StatutoryBucket | str) -> str | None:
        """Form field number for a bucket or derived-total name."""
        name = key.value if isinstance(key, StatutoryBucket) else key
        return self.field_codes.get(name)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(
        cls,
        name: str,
        classification: dict[str, Any],
        field_codes: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> ClassificationRuleSet:
        """
        Build a rule set from the ``classification`` mapping of a rule-set
        document (``prefix``, ``keyword`` and ``defaults`` sections).
        """
        try:
            prefix_rules = tuple(
                PrefixRule(prefix=str(item["prefix"]), bucket=StatutoryBucket(item["bucket"]))
                for item in classification.get("prefix") or ()
            )
            keyword_rules = tuple(
                KeywordRule(
                    keywords=tuple(str(k) for k in item["keywords"]),
                    bucket=StatutoryBucket(item["bucket"]),
                )
                for item in classification.get("keyword") or ()
            )
            defaults = tuple(
                TypeDefaultRule(
                    account_type=AccountType(account_type),
                    bucket=StatutoryBucket(bucket),
                )
                for account_type, bucket in (classification.get("defaults") or {}).items()
            )
        except (KeyError, ValueError) as exc:
            raise ClassificationRuleError(name, f"malformed rule: {exc}") from exc

        return cls(
            name=name,
            prefix_rules=prefix_rules,
            keyword_rules=keyword_rules,
            defaults=defaults,
            field_codes=dict(field_codes or {}),
            **kwargs,
        )

    @classmethod
    def from_document(cls, document: RuleSetDocument) -> ClassificationRuleSet:
        """Build a rule set from a loaded YAML rule-set document."""
        rule_set = cls.from_dict(
            document.name,
            document.classification,
            document.field_codes,
            jurisdiction=document.jurisdiction,
            checksum=document.checksum,
            adjustment_definitions=document.adjustments,
        )
        logger.info(
            "classification_rule_set_loaded",
            extra={
                "rule_set": document.name,
                "jurisdiction": document.jurisdiction,
                "checksum": document.checksum,
                "rule_count": len(rule_set.rules),
            },
        )
        return rule_set


def default_rule_set() -> ClassificationRuleSet:
    """The bundled Israeli Form 6111 rule set."""
    return ClassificationRuleSet.from_document(load_bundled_rule_set(DEFAULT_RULE_SET))


# =========================================================================
# Classification
# =========================================================================


def classify(account: AccountInfo, rule_set: ClassificationRuleSet) -> StatutoryBucket:
    """
    Classify one account.  Pure and total.

    A prefix or keyword rule applies only when its bucket belongs to the
    account's type; otherwise the next rule is tried.
    """
    account_type = AccountType(account.account_type)
    for rule in rule_set.rules:
        match rule:
            case TypeDefaultRule(account_type=rule_type, bucket=bucket):
                if rule_type == account_type:
                    return bucket
            case PrefixRule(bucket=bucket) | KeywordRule(bucket=bucket):
                if bucket.account_type == account_type and rule.matches(account):
                    return bucket
    # Unreachable: __post_init__ guarantees a default per account type
    return rule_set.default_for(account_type)


def classify_accounts(
    accounts: list[AccountInfo] | tuple[AccountInfo, ...],
    rule_set: ClassificationRuleSet,
) -> dict[AccountInfo, StatutoryBucket]:
    """Classify a batch of accounts, preserving input order."""
    return {account: classify(account, rule_set) for account in accounts}


def account_prefix_mapping(rule_set: ClassificationRuleSet) -> dict[str, str]:
    """
    Account-code prefix -> form field code, from the prefix tier.

    Prefixes whose bucket has no field code are omitted.
    """
    mapping: dict[str, str] = {}
    for rule in rule_set.prefix_rules:
        code = rule_set.field_code(rule.bucket)
        if code is not None and rule.prefix not in mapping:
            mapping[rule.prefix] = code
    return mapping
