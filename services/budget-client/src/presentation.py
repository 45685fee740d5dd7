"""Display-only helpers shared by the Streamlit form: labels, currency, chart and table rows."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from budget_model import BudgetResult, City, HistoryEntry

CURRENCY_SYMBOL = "₹"
CITY_PLACEHOLDER = "Select Your City"
EMPTY_HISTORY_MESSAGE = "No budget history found for this email."
MISSING_EMAIL_MESSAGE = "Please enter your email to view history."

# (form field, label, hint)
EXPENSE_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("physiological", "Physiological Expenses", "e.g., food, rent, utilities"),
    ("safety", "Safety Expenses", "e.g., insurance, emergency savings"),
    ("social", "Social Expenses", "e.g., outings, gifts"),
    ("esteem", "Esteem Expenses", "e.g., education, personal achievements"),
    ("self_actualization", "Self-Actualization Expenses", "e.g., hobbies, personal growth"),
)

CHART_LABELS = (
    "Physiological",
    "Safety",
    "Social",
    "Esteem",
    "Self-Actualization",
    "Savings",
    "Recommended Savings",
)
CHART_BACKGROUND_COLORS = (
    "rgba(255, 99, 132, 0.6)",
    "rgba(54, 162, 235, 0.6)",
    "rgba(255, 206, 86, 0.6)",
    "rgba(75, 192, 192, 0.6)",
    "rgba(153, 102, 255, 0.6)",
    "rgba(255, 159, 64, 0.6)",
    "rgba(199, 199, 199, 0.6)",
)
CHART_BORDER_COLORS = tuple(color.replace("0.6)", "1)") for color in CHART_BACKGROUND_COLORS)

HISTORY_COLUMNS = (
    "Date",
    f"Income ({CURRENCY_SYMBOL})",
    f"Expenses ({CURRENCY_SYMBOL})",
    f"Savings ({CURRENCY_SYMBOL})",
    f"Recommended Savings ({CURRENCY_SYMBOL})",
    "Message",
)


def as_number(value: Any) -> Optional[float]:
    """Read a service value as a number for display; anything else gives None."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def format_currency(value: Any) -> str:
    number = as_number(value)
    if number is None:
        if value is None or value == "":
            return f"{CURRENCY_SYMBOL}0.00"
        return str(value)
    return f"{CURRENCY_SYMBOL}{number:,.2f}"


def format_figure(value: Any, suffix: str = "") -> str:
    if value is None or value == "":
        return "n/a"
    number = as_number(value)
    if number is None:
        return str(value)
    return f"{number:g}{suffix}"


def submit_button_label(loading: bool) -> str:
    return "Loading..." if loading else "Plan My Budget"


def history_button_label(loading: bool) -> str:
    return "Loading..." if loading else "View Budget History"


def city_options(cities: Sequence[City]) -> List[Tuple[str, str]]:
    """Return (value, label) pairs with the empty placeholder first."""

    options = [("", CITY_PLACEHOLDER)]
    options.extend((city.option_value, city.label) for city in cities)
    return options


def build_chart_data(result: Optional[BudgetResult]) -> Optional[Dict[str, Any]]:
    """
    Map a budget result onto the seven-slice pie chart.

    Missing values plot as zero; the result itself is not modified.
    """

    if result is None:
        return None

    breakdown = result.expense_categories
    values = [
        breakdown.physiological,
        breakdown.safety,
        breakdown.social,
        breakdown.esteem,
        breakdown.self_actualization,
        result.savings,
        result.recommended_savings,
    ]
    return {
        "labels": list(CHART_LABELS),
        "values": [as_number(value) or 0 for value in values],
        "background_colors": list(CHART_BACKGROUND_COLORS),
        "border_colors": list(CHART_BORDER_COLORS),
    }


def format_timestamp(raw_value: Any) -> str:
    if raw_value is None or raw_value == "":
        return ""
    if isinstance(raw_value, (int, float)):
        # Epoch milliseconds, as produced by JavaScript backends.
        moment = datetime.fromtimestamp(raw_value / 1000)
    else:
        text = str(raw_value).strip()
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return text
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def history_rows(entries: Sequence[HistoryEntry]) -> List[Dict[str, Any]]:
    return [
        {
            HISTORY_COLUMNS[0]: format_timestamp(entry.timestamp),
            HISTORY_COLUMNS[1]: entry.income,
            HISTORY_COLUMNS[2]: entry.expenses,
            HISTORY_COLUMNS[3]: entry.savings,
            HISTORY_COLUMNS[4]: entry.recommended_savings,
            HISTORY_COLUMNS[5]: "" if entry.message is None else str(entry.message),
        }
        for entry in entries
    ]
