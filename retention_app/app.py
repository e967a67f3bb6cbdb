from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

import streamlit as st

# Make imports stable regardless of where Streamlit is launched
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from retention_app.derivation import impact_ratios, roi_percent  # noqa: E402
from retention_app.inputs import FIELDS  # noqa: E402
from retention_app.session import CalculatorSession  # noqa: E402
from retention_app.settings import Settings, load_settings  # noqa: E402
from retention_app.sheets_client import SUCCESS, SheetsClient, StatusFlag  # noqa: E402
from retention_app.snapshot import export_filename, to_csv_text  # noqa: E402
from retention_app.ui_utils import fmt_money, fmt_num, fmt_pct, fmt_signed  # noqa: E402

logger = logging.getLogger(__name__)

# attr -> (label, step, help)
LABELS = {
    "customer_base": ("Total Customer Base", 1, None),
    "multi_purchase_rate": ("Multi-Purchase Rate (%)", 1.0, "Percentage of customers with 2+ purchases"),
    "inactive_customers_count": ("Inactive Customers (12+ months)", 1, "Customers with no purchase in the last 12 months"),
    "aov": ("Average Order Value ($)", 1.0, None),
    "purchase_frequency": ("Purchase Frequency (per year)", 0.1, None),
    "ltv": ("Current Customer LTV ($)", 1.0, None),
    "multi_purchase_improvement": ("Multi-Purchase Rate Improvement (%)", 1.0, "Percentage-point increase in multi-purchase rate"),
    "churn_reduction": ("Churn Reduction (%)", 1.0, "Share of the customer base reactivated"),
    "purchase_freq_improvement": ("Purchase Frequency Improvement", 0.1, "Additional purchases per customer per year"),
}
BASE_FIELDS = FIELDS[:6]
GOAL_FIELDS = FIELDS[6:]


@st.cache_data(show_spinner=False)
def _settings() -> Settings:
    return load_settings()


st.set_page_config(page_title="Customer Retention Calculator", layout="wide")

settings = _settings()
logging.basicConfig(level=settings.log_level)

if "calc" not in st.session_state:
    st.session_state["calc"] = CalculatorSession(settings.defaults)
    st.session_state["save_status"] = StatusFlag(settings.status_clear_seconds)
    # one HTTP session per browser session
    st.session_state["sheets_client"] = SheetsClient(timeout_seconds=settings.timeout_seconds)
    st.session_state["show_call_info"] = True
    st.session_state["show_save_section"] = True
calc: CalculatorSession = st.session_state["calc"]
status: StatusFlag = st.session_state["save_status"]


def _widget_key(attr: str) -> str:
    return f"in_{attr}"


def _on_input_change(attr: str) -> None:
    key = _widget_key(attr)
    # write the clamped value back so the widget shows what the model holds
    st.session_state[key] = calc.update(attr, st.session_state[key])


def _number_input(spec) -> None:
    key = _widget_key(spec.attr)
    if key not in st.session_state:
        st.session_state[key] = getattr(calc.inputs, spec.attr)
    label, step, help_text = LABELS[spec.attr]
    st.number_input(label, key=key, step=step, help=help_text, on_change=_on_input_change, args=(spec.attr,))


def _toggle(flag: str) -> None:
    st.session_state[flag] = not st.session_state[flag]


# -----------------------
# Header and panel toggles
# -----------------------
st.title("Customer Retention Calculator")
t1, t2, _ = st.columns([1, 1, 4])
t1.button(
    "Hide Save Section" if st.session_state["show_save_section"] else "Show Save Section",
    on_click=_toggle, args=("show_save_section",),
)
t2.button(
    "Hide Call Info" if st.session_state["show_call_info"] else "Show Call Info",
    on_click=_toggle, args=("show_call_info",),
)

if st.session_state["show_call_info"]:
    st.markdown("### Call Information")
    c1, c2, c3 = st.columns(3)
    calc.update_meta(
        client_name=c1.text_input("Client Name", value=calc.meta.client_name, placeholder="Enter client name"),
        sales_rep_name=c2.text_input("Sales Rep Name", value=calc.meta.sales_rep_name, placeholder="Enter your name"),
        call_date=c3.date_input("Call Date", value=date.fromisoformat(calc.meta.call_date)).isoformat(),
    )

# -----------------------
# Inputs
# -----------------------
left, right = st.columns(2)
with left:
    st.markdown("### Current Customer Metrics")
    for spec in BASE_FIELDS:
        _number_input(spec)

    inputs = calc.inputs
    cur = calc.results.current_state
    st.markdown("#### Inactive Customer Summary")
    s1, s2, s3 = st.columns(3)
    s1.metric("Count", fmt_num(inputs.inactive_customers_count))
    s2.metric("Percentage", fmt_pct(cur.inactive_rate))
    s3.metric("Active Customers", fmt_num(cur.active_customers))
    if inputs.inactive_customers_count > inputs.customer_base:
        st.warning("Inactive customers exceed the customer base; active customers and revenue go negative.")

with right:
    st.markdown("### Improvement Goals")
    for spec in GOAL_FIELDS:
        _number_input(spec)
    st.caption(f"Multi-purchase improvement is capped at {fmt_pct(calc.inputs.upper_bound('multi_purchase_improvement'))}.")

# -----------------------
# Results
# -----------------------
results = calc.results
cur, imp, delta = results.current_state, results.improved_state, results.impact
ratios = impact_ratios(calc.inputs, results)

st.markdown("## Projected Impact")
r1, r2 = st.columns(2)
for col, title, state in ((r1, "Current State", cur), (r2, "Improved State", imp)):
    with col:
        st.markdown(f"### {title}")
        st.write(f"**Multi-Purchase Customers:** {fmt_num(state.multi_purchase_customers)}")
        st.write(f"**Inactive Customers:** {fmt_num(state.inactive_customers)} ({fmt_pct(state.inactive_rate)})")
        st.write(f"**Annual Revenue:** {fmt_money(state.annual_revenue)}")
        st.write(f"**Total Customer LTV:** {fmt_money(state.total_ltv)}")

m1, m2, m3, m4 = st.columns(4)
m1.metric("Additional Multi-Purchase Customers", fmt_signed(delta.additional_customers),
          f"{fmt_pct(ratios.multi_purchase_growth_pct)} increase")
m2.metric("Reactivated Customers", fmt_signed(delta.reduced_churn),
          f"{fmt_pct(ratios.reactivated_share_pct)} of inactive base")
m3.metric("Annual Revenue Increase", fmt_money(delta.revenue_increase),
          f"{fmt_pct(ratios.revenue_growth_pct)} growth")
m4.metric("Total LTV Increase", fmt_money(delta.ltv_increase),
          f"{fmt_pct(ratios.ltv_growth_pct)} growth")

st.markdown("### Return on Investment")
roi = roi_percent(results, settings.solution_cost_rate)
st.info(f"Estimated first-year ROI: **{roi:,}%**")
st.caption(f"Assumes the solution costs about {settings.solution_cost_rate * 100:g}% of current annual revenue.")

# -----------------------
# Save / export
# -----------------------
if st.session_state["show_save_section"]:
    st.markdown("## Save Your Analysis")
    calc.update_meta(google_sheet_url=st.text_input(
        "Google Apps Script Web App URL",
        value=calc.meta.google_sheet_url,
        placeholder="https://script.google.com/macros/s/your-script-id/exec",
        help="Paste your Apps Script web app URL to save data directly to a sheet",
    ))

    b1, b2, _ = st.columns([1, 1, 3])
    can_save = bool(calc.meta.google_sheet_url and calc.meta.client_name)
    if b1.button("Save to Google Sheets", disabled=not can_save):
        outcome = st.session_state["sheets_client"].save(calc.meta, calc.inputs, results)
        logger.debug("Save finished with status=%s reason=%s", outcome.status, outcome.reason)
        status.set(outcome.status)

    b2.download_button(
        "Download CSV",
        data=to_csv_text(calc.meta, calc.inputs, results),
        file_name=export_filename(calc.meta.client_name, calc.meta.call_date, settings.filename_prefix),
        mime="text/csv",
    )

    @st.fragment(run_every=1)
    def _save_status() -> None:
        current = status.current()
        if current == SUCCESS:
            st.success("Data saved successfully!")
        elif current:
            st.error("Error saving data. Please check your URL and try again.")

    _save_status()
