from __future__ import annotations

import random
import string
from typing import Iterable

import numpy as np


_ID_ALPHABET = string.ascii_lowercase + string.digits


def excel_round(x, decimals: int = 2):
    """Excel ROUND: half away from zero (vectorized)."""
    m = 10 ** decimals
    x = np.asarray(x, dtype=float)
    return np.sign(x) * (np.floor(np.abs(x) * m + 0.5) / m)


def round_int(x: float) -> int:
    """Half-away-from-zero rounding to an int."""
    return int(excel_round(x, 0))


def safe_div(num: float, den: float) -> float:
    """num / den, or 0.0 when den is zero."""
    return float(num) / float(den) if den else 0.0


def new_record_id(taken: Iterable[str] = ()) -> str:
    """Random 9-char base-36 id not present in `taken`."""
    taken = set(taken)
    while True:
        rid = "".join(random.choices(_ID_ALPHABET, k=9))
        if rid not in taken:
            return rid
