from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_int(raw: Any) -> int:
    """Leading integer of `raw`; anything unparseable becomes 0 ("12.7" -> 12)."""
    if isinstance(raw, bool) or raw is None:
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    m = _INT_PREFIX.match(str(raw))
    return int(m.group(1)) if m else 0


def parse_float(raw: Any) -> float:
    """Leading decimal number of `raw`; anything unparseable becomes 0.0."""
    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        m = _FLOAT_PREFIX.match(str(raw))
        if not m:
            return 0.0
        value = float(m.group(1))
    return value if math.isfinite(value) else 0.0


@dataclass(frozen=True)
class FieldSpec:
    attr: str
    key: str
    kind: str  # "int" | "float"
    lower: float
    upper: Optional[float] = None


# Order matters: multi_purchase_improvement is bounded by multi_purchase_rate.
FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec("customer_base", "customerBase", "int", 1),
    FieldSpec("multi_purchase_rate", "multiPurchaseRate", "float", 0, 100),
    FieldSpec("inactive_customers_count", "inactiveCustomersCount", "int", 0),
    FieldSpec("aov", "aov", "float", 0),
    FieldSpec("purchase_frequency", "purchaseFrequency", "float", 0),
    FieldSpec("ltv", "ltv", "float", 0),
    FieldSpec("multi_purchase_improvement", "multiPurchaseImprovement", "float", 0),
    FieldSpec("churn_reduction", "churnReduction", "float", 0, 100),
    FieldSpec("purchase_freq_improvement", "purchaseFreqImprovement", "float", 0),
)

_BY_NAME: Dict[str, FieldSpec] = {}
for _f in FIELDS:
    _BY_NAME[_f.attr] = _f
    _BY_NAME[_f.key] = _f


def field_spec(name: str) -> FieldSpec:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise KeyError(f"Unknown input field: {name!r}") from None


@dataclass
class RetentionInputs:
    """Base metrics plus improvement goals. Values written through set_field are always in-domain."""

    customer_base: int = 1000
    multi_purchase_rate: float = 20.0
    inactive_customers_count: int = 300
    aov: float = 100.0
    purchase_frequency: float = 2.0
    ltv: float = 200.0
    multi_purchase_improvement: float = 5.0
    churn_reduction: float = 5.0
    purchase_freq_improvement: float = 0.5

    def upper_bound(self, name: str) -> Optional[float]:
        spec = field_spec(name)
        if spec.attr == "multi_purchase_improvement":
            return 100.0 - self.multi_purchase_rate
        return spec.upper

    def set_field(self, name: str, raw_value: Any):
        """Parse, clamp and store one field; never raises for bad values."""
        spec = field_spec(name)
        value = parse_int(raw_value) if spec.kind == "int" else parse_float(raw_value)
        value = max(spec.lower, value)
        upper = self.upper_bound(spec.attr)
        if upper is not None:
            value = min(upper, value)
        value = int(value) if spec.kind == "int" else float(value)
        setattr(self, spec.attr, value)
        return value

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RetentionInputs":
        inputs = cls()
        names = {field_spec(k).attr: v for k, v in values.items()}
        for spec in FIELDS:
            if spec.attr in names:
                inputs.set_field(spec.attr, names[spec.attr])
        return inputs

    def as_wire_dict(self) -> Dict[str, float]:
        return {spec.key: getattr(self, spec.attr) for spec in FIELDS}


@dataclass
class CallMetadata:
    client_name: str = ""
    sales_rep_name: str = ""
    call_date: str = field(default_factory=lambda: date.today().isoformat())
    google_sheet_url: str = ""
