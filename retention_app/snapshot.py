from __future__ import annotations

import io
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from retention_app.derivation import Results
from retention_app.inputs import CallMetadata, RetentionInputs, field_spec, parse_float, parse_int

SNAPSHOT_FIELDS: Tuple[str, ...] = (
    "timestamp",
    "callDate",
    "salesRep",
    "clientName",
    "customerBase",
    "multiPurchaseRate",
    "inactiveCustomersCount",
    "aov",
    "purchaseFrequency",
    "ltv",
    "multiPurchaseImprovement",
    "churnReduction",
    "purchaseFreqImprovement",
    "currentMultiPurchaseCustomers",
    "currentInactiveCustomers",
    "currentAnnualRevenue",
    "currentTotalLtv",
    "improvedMultiPurchaseCustomers",
    "improvedInactiveCustomers",
    "improvedAnnualRevenue",
    "improvedTotalLtv",
    "additionalCustomers",
    "reducedChurn",
    "revenueIncrease",
    "ltvIncrease",
)

# (label in the export, input attribute)
CURRENT_METRIC_ROWS: Tuple[Tuple[str, str], ...] = (
    ("Customer Base", "customer_base"),
    ("Multi-Purchase Rate (%)", "multi_purchase_rate"),
    ("Inactive Customers", "inactive_customers_count"),
    ("AOV", "aov"),
    ("Purchase Frequency", "purchase_frequency"),
    ("LTV", "ltv"),
)
GOAL_ROWS: Tuple[Tuple[str, str], ...] = (
    ("Multi-Purchase Rate Improvement (%)", "multi_purchase_improvement"),
    ("Churn Reduction (%)", "churn_reduction"),
    ("Purchase Freq Improvement", "purchase_freq_improvement"),
)
RESULT_HEADER = ("Metric", "Current", "Improved", "Impact")
N_COLS = len(RESULT_HEADER)


def iso_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def literal(value: Any) -> str:
    """Plain text for a value: whole floats lose their '.0', nothing else is formatted."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_snapshot(
    meta: CallMetadata,
    inputs: RetentionInputs,
    results: Results,
    timestamp: Optional[str] = None,
) -> Dict[str, Any]:
    cur, imp, delta = results.current_state, results.improved_state, results.impact
    snap: Dict[str, Any] = {
        "timestamp": timestamp or iso_timestamp(),
        "callDate": meta.call_date,
        "salesRep": meta.sales_rep_name,
        "clientName": meta.client_name,
    }
    snap.update(inputs.as_wire_dict())
    snap.update({
        "currentMultiPurchaseCustomers": cur.multi_purchase_customers,
        "currentInactiveCustomers": cur.inactive_customers,
        "currentAnnualRevenue": cur.annual_revenue,
        "currentTotalLtv": cur.total_ltv,
        "improvedMultiPurchaseCustomers": imp.multi_purchase_customers,
        "improvedInactiveCustomers": imp.inactive_customers,
        "improvedAnnualRevenue": imp.annual_revenue,
        "improvedTotalLtv": imp.total_ltv,
        "additionalCustomers": delta.additional_customers,
        "reducedChurn": delta.reduced_churn,
        "revenueIncrease": delta.revenue_increase,
        "ltvIncrease": delta.ltv_increase,
    })
    return {k: snap[k] for k in SNAPSHOT_FIELDS}


def form_fields(snapshot: Dict[str, Any]) -> List[Tuple[str, str]]:
    return [(k, literal(snapshot[k])) for k in SNAPSHOT_FIELDS]


def results_table(results: Results) -> Dict[str, Tuple[float, float, float]]:
    cur, imp, delta = results.current_state, results.improved_state, results.impact
    return {
        "Multi-Purchase Customers": (cur.multi_purchase_customers, imp.multi_purchase_customers, delta.additional_customers),
        "Inactive Customers": (cur.inactive_customers, imp.inactive_customers, delta.reduced_churn),
        "Annual Revenue": (cur.annual_revenue, imp.annual_revenue, delta.revenue_increase),
        "Total LTV": (cur.total_ltv, imp.total_ltv, delta.ltv_increase),
    }


def export_rows(meta: CallMetadata, inputs: RetentionInputs, results: Results) -> List[List[Any]]:
    rows: List[List[Any]] = [
        ["Call Information"],
        ["Date", meta.call_date],
        ["Sales Rep", meta.sales_rep_name],
        ["Client Name", meta.client_name],
        [],
        ["Current Metrics"],
    ]
    rows += [[label, getattr(inputs, attr)] for label, attr in CURRENT_METRIC_ROWS]
    rows += [[], ["Improvement Goals"]]
    rows += [[label, getattr(inputs, attr)] for label, attr in GOAL_ROWS]
    rows += [[], ["Results"], list(RESULT_HEADER)]
    rows += [[metric, *values] for metric, values in results_table(results).items()]
    return rows


def to_csv_text(meta: CallMetadata, inputs: RetentionInputs, results: Results) -> str:
    grid = [
        [literal(v) for v in row] + [""] * (N_COLS - len(row))
        for row in export_rows(meta, inputs, results)
    ]
    return pd.DataFrame(grid).to_csv(header=False, index=False, lineterminator="\n")


def export_filename(client_name: str, call_date: str, prefix: str = "retention-analysis") -> str:
    slug = re.sub(r"[^a-z0-9]", "-", client_name, flags=re.IGNORECASE).lower()
    return f"{prefix}-{slug}-{call_date}.csv"


@dataclass(frozen=True)
class ExportedSnapshot:
    meta: CallMetadata
    inputs: RetentionInputs
    results: Dict[str, Tuple[float, float, float]]


def _number(text: str) -> float:
    value = float(text)
    return int(value) if value.is_integer() else value


def parse_csv_text(text: str) -> ExportedSnapshot:
    """Read back a document written by `to_csv_text`."""
    df = pd.read_csv(
        io.StringIO(text), header=None, dtype=str, keep_default_na=False, skip_blank_lines=False
    )
    section = None
    call: Dict[str, str] = {}
    values: Dict[str, str] = {}
    table: Dict[str, Tuple[float, float, float]] = {}

    for row in df.itertuples(index=False):
        cells = [str(c) for c in row]
        label = cells[0]
        if label in ("Call Information", "Current Metrics", "Improvement Goals", "Results") and not any(cells[1:]):
            section = label
            continue
        if not any(cells):
            continue
        if section == "Call Information":
            call[label] = cells[1]
        elif section in ("Current Metrics", "Improvement Goals"):
            values[label] = cells[1]
        elif section == "Results" and tuple(cells) != RESULT_HEADER:
            table[label] = tuple(_number(c) for c in cells[1:N_COLS])

    meta = CallMetadata(
        client_name=call.get("Client Name", ""),
        sales_rep_name=call.get("Sales Rep", ""),
        call_date=call.get("Date", ""),
    )
    # literal values, no clamping: a stored goal may exceed the bound of a later-edited rate
    parsed = {}
    for label, attr in CURRENT_METRIC_ROWS + GOAL_ROWS:
        if label in values:
            parse = parse_int if field_spec(attr).kind == "int" else parse_float
            parsed[attr] = parse(values[label])
    inputs = RetentionInputs(**parsed)
    return ExportedSnapshot(meta=meta, inputs=inputs, results=table)
