from __future__ import annotations

from typing import Any, Mapping, Optional

from retention_app.derivation import Results, derive
from retention_app.inputs import CallMetadata, RetentionInputs


class CalculatorSession:
    """Owns the inputs and call info for one user; results are re-derived on every edit."""

    def __init__(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        self.inputs = RetentionInputs.from_mapping(defaults or {})
        self.meta = CallMetadata()
        self.results: Results = derive(self.inputs)

    def update(self, name: str, raw_value: Any):
        value = self.inputs.set_field(name, raw_value)
        self.results = derive(self.inputs)
        return value

    def update_meta(self, **fields: str) -> None:
        for name, value in fields.items():
            if not hasattr(self.meta, name):
                raise KeyError(f"Unknown call field: {name!r}")
            setattr(self.meta, name, "" if value is None else str(value))
