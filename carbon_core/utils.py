# MIT License
from __future__ import annotations
import hashlib, json
import math
from pydantic import BaseModel


def input_hash(obj: BaseModel) -> str:
    """Compute a stable hash for a request or input model.

    Serialises the model to JSON (with sorted keys) and computes a
    SHA256 hash.  Stored with training examples so that duplicate
    submissions can be traced back to the same input.

    Parameters
    ----------
    obj:
        Any pydantic model instance.

    Returns
    -------
    str
        Hexadecimal string representation of the hash.
    """
    data = obj.model_dump(mode="json", exclude_none=True)
    # ensure deterministic key ordering
    payload = json.dumps(data, sort_keys=True).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def round_to(value: float, digits: int = 3) -> float:
    """Round half away from zero (``round`` would round half to even)."""
    p = 10.0 ** digits
    return math.copysign(math.floor(abs(value) * p + 0.5) / p, value)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def whole_years(duration) -> int:
    """Floor a duration to whole years, never below one."""
    return max(1, int(math.floor(float(1 if duration is None else duration))))
