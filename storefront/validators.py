"""
Checkout form field validation.

Each field is checked against a row of ``FIELD_RULES``: the trimmed value must
be non-empty, fit the rule's length bounds and match its character pattern,
in that order. The first failing check decides the reason code.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

EMPTY = "EMPTY"
TOO_SHORT = "TOO_SHORT"
TOO_LONG = "TOO_LONG"
PATTERN_MISMATCH = "PATTERN_MISMATCH"

# [^\W\d_] is "any unicode letter"
_NAME_CHARS = r"^(?:[^\W\d_]|[ '\-])+$"
_CITY_CHARS = r"^(?:[^\W\d_]|[ '\-.])+$"
_POSTAL_CHARS = r"^[A-Za-z0-9 \-]+$"
_EMAIL = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


@dataclass(frozen=True)
class FieldRule:
    min_length: int
    max_length: int
    pattern: Optional[str]  # None: any printable characters
    label: str


@dataclass(frozen=True)
class FieldResult:
    field: str
    value: str
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        label = FIELD_RULES[self.field].label if self.field in FIELD_RULES else self.field
        if self.reason == EMPTY:
            return f"{label} is required"
        if self.reason == TOO_SHORT:
            return f"{label} must be at least {FIELD_RULES[self.field].min_length} characters"
        if self.reason == TOO_LONG:
            return f"{label} must be at most {FIELD_RULES[self.field].max_length} characters"
        if self.reason == PATTERN_MISMATCH:
            return f"{label} contains invalid characters"
        return ""


FIELD_RULES = {
    "name": FieldRule(2, 50, _NAME_CHARS, "Name"),
    "address": FieldRule(5, 100, None, "Address"),
    "city": FieldRule(2, 50, _CITY_CHARS, "City"),
    "zip": FieldRule(3, 10, _POSTAL_CHARS, "Postal code"),
    "email": FieldRule(3, 254, _EMAIL, "Email"),
}

# Aliases for the rule-set names used by the checkout form
RULE_ALIASES = {
    "person-name": "name",
    "street-address": "address",
    "city": "city",
    "postal-code": "zip",
}

CUSTOMER_FIELDS = ("name", "address", "city", "zip")


def _matches(field_rule: FieldRule, value: str) -> bool:
    if field_rule.pattern is None:
        # Rejects C0/C1 controls and zero-width format characters
        return value.isprintable()
    return re.match(field_rule.pattern, value) is not None


def validate_field(value, rule: str) -> FieldResult:
    field = RULE_ALIASES.get(rule, rule)
    field_rule = FIELD_RULES.get(field)
    if field_rule is None:
        raise KeyError(f"Unknown field rule: {rule}")

    trimmed = "" if value is None else str(value).strip()
    if not trimmed:
        return FieldResult(field, trimmed, EMPTY)
    if len(trimmed) < field_rule.min_length:
        return FieldResult(field, trimmed, TOO_SHORT)
    if len(trimmed) > field_rule.max_length:
        return FieldResult(field, trimmed, TOO_LONG)
    if not _matches(field_rule, trimmed):
        return FieldResult(field, trimmed, PATTERN_MISMATCH)
    return FieldResult(field, trimmed)


def validate_customer(customer) -> List[FieldResult]:
    """Validate name, address, city and zip, plus email when one was given."""
    results = [validate_field(getattr(customer, f), f) for f in CUSTOMER_FIELDS]
    email = getattr(customer, "email", None)
    if email is not None and email.strip():
        results.append(validate_field(email, "email"))
    return results


def first_failure(results: List[FieldResult]) -> Optional[FieldResult]:
    for result in results:
        if not result.ok:
            return result
    return None
