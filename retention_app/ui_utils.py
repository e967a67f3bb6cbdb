from __future__ import annotations

import numpy as np

from retention_app.derivation import round_half_up


def _missing(x) -> bool:
    return x is None or (isinstance(x, float) and np.isnan(x))


def _whole(x: float):
    # sign and magnitude rounded half away from zero: 2.5 -> ("", 3), -2.5 -> ("-", 3)
    n = round_half_up(abs(x))
    return ("-" if x < 0 and n != 0 else ""), n


def fmt_pct(x: float) -> str:
    # x is already a percentage (12.5 -> "12.5%")
    if _missing(x):
        return "—"
    return f"{x:.1f}%"


def fmt_num(x: float) -> str:
    if _missing(x):
        return "—"
    sign, n = _whole(x)
    return f"{sign}{n:,}"


def fmt_signed(x: float) -> str:
    if _missing(x):
        return "—"
    sign, n = _whole(x)
    return f"{sign or '+'}{n:,}"


def fmt_money(x: float) -> str:
    # whole-dollar USD: 140000 -> "$140,000", -2500 -> "-$2,500"
    if _missing(x):
        return "—"
    sign, n = _whole(x)
    return f"{sign}${n:,}"
