from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any

from budget_model import EXPENSE_CATEGORY_NAMES, BudgetRequest, ExpenseCategories


def parse_amount(raw_value: Any) -> float:
    """
    Read a form field as a number, treating blank, non-numeric, or non-finite input as zero.
    """

    if raw_value is None:
        return 0.0
    if isinstance(raw_value, bool):
        return 0.0
    if isinstance(raw_value, (int, float)):
        value = float(raw_value)
    else:
        text = str(raw_value).strip().replace(",", "")
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return 0.0
    return value if math.isfinite(value) else 0.0


@dataclass
class FormState:
    """
    In-progress input for one session.

    Fields hold whatever the user typed; numbers are only interpreted when read,
    so a half-typed value never blocks editing.
    """

    email: str = ""
    income: str = ""
    location: str = ""
    savings_goal: str = ""
    physiological: str = ""
    safety: str = ""
    social: str = ""
    esteem: str = ""
    self_actualization: str = ""

    def set_field(self, name: str, value: Any) -> None:
        if name not in _FIELD_NAMES:
            raise KeyError(f"Unknown form field '{name}'")
        setattr(self, name, "" if value is None else str(value))

    def expense_categories(self) -> ExpenseCategories:
        return ExpenseCategories(**{name: parse_amount(getattr(self, name)) for name in EXPENSE_CATEGORY_NAMES})

    def total_expenses(self) -> float:
        return self.expense_categories().total

    def to_request(self) -> BudgetRequest:
        return BudgetRequest(
            email=self.email.strip(),
            income=parse_amount(self.income),
            savings_goal=parse_amount(self.savings_goal),
            location=self.location,
            expense_categories=self.expense_categories(),
        )


_FIELD_NAMES = frozenset(field.name for field in fields(FormState))
