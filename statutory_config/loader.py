"""
Rule-Set Loader (``statutory_config.loader``).

Responsibility
--------------
Loads jurisdiction rule-set YAML files (account classification tables,
form field codes, tax adjustment rules) into ``RuleSetDocument`` records.
Interpreting the document belongs to the reporting module; this layer only
reads, shape-checks, and fingerprints it.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel or
modules.

Invariants enforced
-------------------
* Every document has ``name``, ``jurisdiction`` and ``classification``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for rule-set
  identity; the checksum is stored on every generated report.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError``.
* Invalid date format  -> ``ValueError`` from ``date.fromisoformat``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

RULE_SETS_DIR = Path(__file__).resolve().parent / "rule_sets"

REQUIRED_KEYS = ("name", "jurisdiction", "classification")


@dataclass(frozen=True)
class RuleSetDocument:
    """A parsed, fingerprinted rule-set YAML document."""

    name: str
    jurisdiction: str
    version: int
    effective_from: date | None
    classification: dict[str, Any]
    field_codes: dict[str, str]
    adjustments: tuple[dict[str, Any], ...]
    checksum: str
    description: str = ""
    source_path: str | None = field(default=None, compare=False)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """
    Parse a date from YAML (string or date object).

    Raises:
        ValueError: if ``value`` is not a valid date representation.
    """
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the document's canonical JSON form."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_rule_set(data: dict[str, Any], source_path: str | None = None) -> RuleSetDocument:
    """
    Build a ``RuleSetDocument`` from a parsed YAML mapping.

    Raises:
        KeyError: if a required top-level key is missing.
    """
    for key in REQUIRED_KEYS:
        if key not in data:
            raise KeyError(f"Rule set is missing required key '{key}'")

    effective_from = data.get("effective_from")
    return RuleSetDocument(
        name=data["name"],
        jurisdiction=data["jurisdiction"],
        version=int(data.get("version", 1)),
        effective_from=parse_date(effective_from) if effective_from else None,
        classification=dict(data["classification"]),
        field_codes={str(k): str(v) for k, v in (data.get("field_codes") or {}).items()},
        adjustments=tuple(data.get("adjustments") or ()),
        checksum=compute_checksum(data),
        description=data.get("description", ""),
        source_path=source_path,
    )


def load_rule_set(path: Path | str) -> RuleSetDocument:
    """Load and parse a rule-set YAML file."""
    path = Path(path)
    return parse_rule_set(load_yaml_file(path), source_path=str(path))


def bundled_rule_set_path(name: str) -> Path:
    """Path of a rule set shipped in ``statutory_config/rule_sets``."""
    return RULE_SETS_DIR / f"{name}.yaml"


def load_bundled_rule_set(name: str) -> RuleSetDocument:
    """
    Load a rule set shipped with the package.

    Raises:
        FileNotFoundError: if no bundled rule set has that name.
    """
    return load_rule_set(bundled_rule_set_path(name))
