"""Retailer link canonicalization."""

from __future__ import annotations

import os
import pathlib

import yaml

from reconciler.links.rules import RetailerRules

RULES_PATH = pathlib.Path(__file__).with_name("retailers.yml")


class RuleSetNotFound(KeyError):
    """No canonicalization rules are configured for a retailer."""


def load_retailer_rules(path: pathlib.Path | str | None = None) -> dict[str, RetailerRules]:
    """Load rule sets keyed by lower-cased retailer name."""
    source = pathlib.Path(path or os.environ.get("RULES_PATH") or RULES_PATH)
    data = yaml.safe_load(source.read_text())
    rule_sets = [RetailerRules.from_config(item) for item in data or []]
    return {rules.retailer.lower(): rules for rules in rule_sets}


def rules_for(rule_sets: dict[str, RetailerRules], retailer: str) -> RetailerRules:
    try:
        return rule_sets[retailer.lower()]
    except KeyError:
        raise RuleSetNotFound(retailer) from None
