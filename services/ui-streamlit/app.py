import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine

import plotly.graph_objects as go
import streamlit as st

UI_ROOT = Path(__file__).resolve().parent
SERVICES_ROOT = UI_ROOT.parent
CLIENT_SRC = SERVICES_ROOT / "budget-client" / "src"
for path in (SERVICES_ROOT, CLIENT_SRC):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from budget_client import BudgetServiceClient  # noqa: E402
from presentation import (  # noqa: E402
    CURRENCY_SYMBOL,
    EMPTY_HISTORY_MESSAGE,
    EXPENSE_FIELDS,
    MISSING_EMAIL_MESSAGE,
    build_chart_data,
    city_options,
    format_currency,
    format_figure,
    history_button_label,
    history_rows,
    submit_button_label,
)
from session_controller import SessionController  # noqa: E402
from shared.client_settings import ClientSettingsError, load_client_settings  # noqa: E402
from shared.observability import setup_telemetry  # noqa: E402

setup_telemetry(service_name="wealthsync-ui")


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


def init_session_state() -> SessionController | None:
    controller = st.session_state.get("controller")
    if controller is not None:
        return controller

    try:
        settings = load_client_settings()
    except ClientSettingsError as exc:
        st.error(f"Invalid client configuration: {exc}")
        return None

    controller = SessionController(BudgetServiceClient(settings))
    st.session_state["controller"] = controller
    st.session_state["api_base_url"] = settings.api_base_url
    with st.spinner("Loading cities..."):
        _run(controller.on_mount())
    return controller


def show_notices(controller: SessionController) -> None:
    for notice in controller.drain_notices():
        if notice.level == "warning":
            st.warning(notice.message)
        else:
            st.error(notice.message)


def _widget_key(field_name: str) -> str:
    return f"form_{field_name}"


def _text_field(controller: SessionController, field_name: str, label: str, **kwargs: Any) -> None:
    key = _widget_key(field_name)
    if key not in st.session_state:
        st.session_state[key] = getattr(controller.form, field_name)
    st.text_input(label, key=key, **kwargs)
    controller.form.set_field(field_name, st.session_state[key])


def render_backend_controls(controller: SessionController) -> None:
    st.sidebar.header("Backend connection")
    st.sidebar.caption(f"API base: {st.session_state.get('api_base_url', '')}")
    if st.sidebar.button("Stop retrying", key="cancel_pending_call"):
        if controller.cancel():
            st.sidebar.info("The pending request will stop after its current attempt.")
        else:
            st.sidebar.write("No request is pending.")


def render_form(controller: SessionController) -> None:
    _text_field(controller, "email", "Your Email", placeholder="you@example.com")

    options = city_options(controller.cities)
    values = [value for value, _ in options]
    labels = dict(options)
    location_key = _widget_key("location")
    if st.session_state.get(location_key) not in values:
        st.session_state[location_key] = controller.form.location if controller.form.location in values else ""
    st.selectbox("Your City", values, key=location_key, format_func=lambda value: labels[value])
    controller.form.set_field("location", st.session_state[location_key])

    _text_field(controller, "income", f"Monthly Income ({CURRENCY_SYMBOL})")

    st.subheader("Break Down Your Expenses")
    for field_name, label, hint in EXPENSE_FIELDS:
        _text_field(controller, field_name, f"{label} ({CURRENCY_SYMBOL})", help=hint)

    st.write(f"Total Expenses: {format_currency(controller.total_expenses())}")

    _text_field(controller, "savings_goal", f"Savings Goal ({CURRENCY_SYMBOL})")

    if st.button(submit_button_label(controller.loading), disabled=controller.loading):
        with st.spinner("Planning your budget..."):
            _run(controller.submit())


def render_result(controller: SessionController) -> None:
    result = controller.result
    if result is None:
        return

    st.write(f"Your Savings: {format_currency(result.savings)}")
    st.write(f"Adjusted Savings (after cost of living): {format_currency(result.adjusted_savings)}")
    st.write(f"Recommended Savings: {format_currency(result.recommended_savings)}")
    st.markdown(
        f"Inflation Rate in Your Area: {format_figure(result.inflation, '%')}",
        help="This is the annual inflation rate for your location, affecting your savings goal.",
    )
    st.markdown(
        f"Cost of Living Index: {format_figure(result.cost_of_living_index)}",
        help="A higher index means a more expensive location (baseline = 50).",
    )
    if result.message:
        st.write(str(result.message))

    if result.recommendations:
        st.subheader("Personalized Tips")
        for tip in result.recommendations:
            st.markdown(f"- {tip}")

    chart = build_chart_data(result)
    if chart:
        st.subheader("Budget Breakdown")
        figure = go.Figure(
            go.Pie(
                labels=chart["labels"],
                values=chart["values"],
                marker={"colors": chart["background_colors"], "line": {"color": chart["border_colors"], "width": 1}},
            )
        )
        st.plotly_chart(figure, use_container_width=True)


def render_history(controller: SessionController) -> None:
    st.subheader("Your Budget History")
    if not controller.form.email.strip():
        st.write(MISSING_EMAIL_MESSAGE)
        return

    if st.button(history_button_label(controller.loading), disabled=not controller.can_view_history):
        with st.spinner("Fetching history..."):
            _run(controller.view_history())

    rows = history_rows(controller.history)
    if rows:
        st.table(rows)
    else:
        st.write(EMPTY_HISTORY_MESSAGE)


def main() -> None:
    st.title("WealthSync Budget Planner")
    controller = init_session_state()
    if controller is None:
        return

    render_backend_controls(controller)
    render_form(controller)
    render_result(controller)
    render_history(controller)
    show_notices(controller)


if __name__ == "__main__":
    main()
