from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

EXPENSE_CATEGORY_NAMES = (
    "physiological",
    "safety",
    "social",
    "esteem",
    "self_actualization",
)


@dataclass(frozen=True, slots=True)
class ExpenseCategories:
    """Monthly spend split along Maslow's hierarchy of needs."""

    physiological: float = 0.0
    safety: float = 0.0
    social: float = 0.0
    esteem: float = 0.0
    self_actualization: float = 0.0

    @property
    def total(self) -> float:
        return round(
            self.physiological + self.safety + self.social + self.esteem + self.self_actualization,
            2,
        )

    def to_payload(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in EXPENSE_CATEGORY_NAMES}


@dataclass(frozen=True, slots=True)
class BudgetRequest:
    """
    Snapshot of the form sent to the budgeting service.

    Built once per submit. `expenses` is read from the frozen categories, so
    the total sent always matches the breakdown sent.
    """

    email: str
    income: float
    savings_goal: float
    location: str
    expense_categories: ExpenseCategories

    @property
    def expenses(self) -> float:
        return self.expense_categories.total

    def to_payload(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "income": self.income,
            "expenses": self.expenses,
            "savings_goal": self.savings_goal,
            "location": self.location,
            "expense_categories": self.expense_categories.to_payload(),
        }


class City(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    state: str = ""

    @property
    def option_value(self) -> str:
        return self.name.lower()

    @property
    def label(self) -> str:
        return f"{self.name} ({self.state})" if self.state else self.name


class ExpenseBreakdown(BaseModel):
    """Echo of the submitted categories; values are whatever the service sent."""

    model_config = ConfigDict(extra="allow")

    physiological: Any = None
    safety: Any = None
    social: Any = None
    esteem: Any = None
    self_actualization: Any = None


class BudgetResult(BaseModel):
    """Savings plan returned by the service; forwarded as-is, never recomputed."""

    model_config = ConfigDict(extra="allow")

    savings: Any = None
    adjusted_savings: Any = None
    recommended_savings: Any = None
    inflation: Any = None
    cost_of_living_index: Any = None
    message: Any = None
    recommendations: List[Any] = Field(default_factory=list)
    expense_categories: ExpenseBreakdown = Field(default_factory=ExpenseBreakdown)

    @field_validator("recommendations", mode="before")
    @classmethod
    def _coerce_recommendations(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return value
        return [value]

    @field_validator("expense_categories", mode="before")
    @classmethod
    def _coerce_breakdown(cls, value: Any) -> Any:
        return value if isinstance(value, (Mapping, BaseModel)) else {}


class HistoryEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Any = None
    timestamp: Any = None
    income: Any = None
    expenses: Any = None
    savings: Any = None
    recommended_savings: Any = None
    message: Any = None
