"""
Pytest configuration: put the repository root on sys.path so
`retention_app.*` imports resolve without an install.
"""

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_sys_path() -> None:
    repo_root = str(Path(__file__).resolve().parents[1])
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ensure_repo_root_on_sys_path()

from retention_app.inputs import CallMetadata, RetentionInputs  # noqa: E402


@pytest.fixture()
def example_inputs() -> RetentionInputs:
    """The worked example: 1000 customers, 20% multi-purchase, 300 inactive."""
    return RetentionInputs(
        customer_base=1000,
        multi_purchase_rate=20.0,
        inactive_customers_count=300,
        aov=100.0,
        purchase_frequency=2.0,
        ltv=200.0,
        multi_purchase_improvement=5.0,
        churn_reduction=5.0,
        purchase_freq_improvement=0.5,
    )


@pytest.fixture()
def meta() -> CallMetadata:
    return CallMetadata(
        client_name="Acme, Inc.",
        sales_rep_name="Jordan Lee",
        call_date="2024-03-15",
        google_sheet_url="https://script.google.com/macros/s/abc/exec",
    )
