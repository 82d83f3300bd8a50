"""Declarative rules gating the "add worker" form."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from sanaee.domain.workers import SPECIALTIES, strip_phone_separators

PHONE_PATTERN = re.compile(r"^(01[0125][0-9]{8}|[0-9]{7,15})$")


@dataclass(frozen=True)
class Rule:
    field: str
    message: str
    test: Callable[[str], bool]


def _phone_ok(value: str) -> bool:
    return bool(PHONE_PATTERN.fullmatch(strip_phone_separators(value)))


RULES: tuple[Rule, ...] = (
    Rule("name", "الاسم يجب أن يكون 3 أحرف على الأقل", lambda v: len(v.strip()) >= 3),
    Rule("specialty", "الرجاء اختيار التخصص", lambda v: v != "" and v in SPECIALTIES),
    Rule("area", "الرجاء إدخال المنطقة (حرفان على الأقل)", lambda v: len(v.strip()) >= 2),
    Rule("phone", "رقم الهاتف غير صحيح (مثال: 01012345678)", _phone_ok),
)


@dataclass(frozen=True)
class ValidationResult:
    fields: tuple[str, ...]
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def first_invalid_field(self) -> str | None:
        """Field that should receive focus: the first failure in rule order."""
        return next(iter(self.errors), None)

    def as_fields(self) -> dict[str, dict[str, object]]:
        return {
            name: {"ok": name not in self.errors, "message": self.errors.get(name, "")}
            for name in self.fields
        }


def validate_form(values: Mapping[str, object], rules: Sequence[Rule] = RULES) -> ValidationResult:
    """Run every rule (no short-circuit) and collect all failures in order."""
    errors: dict[str, str] = {}
    for rule in rules:
        raw = values.get(rule.field)
        value = "" if raw is None else str(raw)
        if not rule.test(value):
            errors[rule.field] = rule.message
    return ValidationResult(fields=tuple(rule.field for rule in rules), errors=errors)
