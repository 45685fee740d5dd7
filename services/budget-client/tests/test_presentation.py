from budget_model import BudgetResult, City, HistoryEntry
from presentation import (
    CHART_LABELS,
    CITY_PLACEHOLDER,
    HISTORY_COLUMNS,
    build_chart_data,
    city_options,
    as_number,
    format_currency,
    format_figure,
    format_timestamp,
    history_button_label,
    history_rows,
    submit_button_label,
)


def test_build_chart_data_maps_breakdown_and_savings() -> None:
    result = BudgetResult.model_validate(
        {
            "savings": 19000,
            "recommended_savings": 10000,
            "expense_categories": {
                "physiological": 20000,
                "safety": 5000,
                "social": 3000,
                "esteem": 2000,
                "self_actualization": 1000,
            },
        }
    )

    chart = build_chart_data(result)

    assert chart is not None
    assert chart["labels"] == list(CHART_LABELS)
    assert chart["values"] == [20000, 5000, 3000, 2000, 1000, 19000, 10000]
    assert len(chart["background_colors"]) == len(CHART_LABELS)
    assert chart["border_colors"][0] == "rgba(255, 99, 132, 1)"


def test_build_chart_data_plots_missing_values_as_zero() -> None:
    result = BudgetResult.model_validate({"expense_categories": None, "recommendations": None})

    chart = build_chart_data(result)

    assert chart is not None
    assert chart["values"] == [0] * 7
    assert result.recommendations == []


def test_build_chart_data_without_result() -> None:
    assert build_chart_data(None) is None


def test_format_currency() -> None:
    assert format_currency(31000) == "₹31,000.00"
    assert format_currency(1234.5) == "₹1,234.50"
    assert format_currency(None) == "₹0.00"
    assert format_currency("N/A") == "N/A"


def test_format_figure_passes_through_non_numeric_values() -> None:
    assert format_figure(5.4, "%") == "5.4%"
    assert format_figure(62) == "62"
    assert format_figure("N/A", "%") == "N/A"
    assert format_figure(None) == "n/a"


def test_build_chart_data_plots_non_numeric_values_as_zero() -> None:
    result = BudgetResult.model_validate(
        {"savings": "lots", "recommended_savings": "1,500", "expense_categories": {"safety": True, "social": "abc"}}
    )

    chart = build_chart_data(result)

    assert chart is not None
    assert chart["values"] == [0, 0, 0, 0, 0, 0, 1500.0]
    assert as_number("nan") is None


def test_button_labels_follow_loading_flag() -> None:
    assert submit_button_label(False) == "Plan My Budget"
    assert submit_button_label(True) == "Loading..."
    assert history_button_label(False) == "View Budget History"
    assert history_button_label(True) == "Loading..."


def test_city_options_lists_placeholder_first() -> None:
    cities = [City(name="Mumbai", state="Maharashtra"), City(name="Delhi", state="")]

    assert city_options(cities) == [
        ("", CITY_PLACEHOLDER),
        ("mumbai", "Mumbai (Maharashtra)"),
        ("delhi", "Delhi"),
    ]


def test_format_timestamp_handles_iso_and_unparsable_values() -> None:
    assert format_timestamp("2024-05-01T10:30:00") == "01/05/2024, 10:30:00"
    assert format_timestamp("yesterday") == "yesterday"
    assert format_timestamp(None) == ""


def test_history_rows_preserve_service_order() -> None:
    entries = [
        HistoryEntry(id=2, timestamp="2024-05-02T09:00:00", income=50000, expenses=31000, savings=19000,
                     recommended_savings=10000, message="Great"),
        HistoryEntry(id=1, timestamp="2024-04-01T09:00:00", income=45000, message=None),
    ]

    rows = history_rows(entries)

    assert [row[HISTORY_COLUMNS[0]] for row in rows] == ["02/05/2024, 09:00:00", "01/04/2024, 09:00:00"]
    assert rows[0][HISTORY_COLUMNS[3]] == 19000
    assert rows[1][HISTORY_COLUMNS[5]] == ""
