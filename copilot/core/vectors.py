"""Embedding vector decoding and cosine distance.

Rows read back from ``company_embeddings`` do not arrive in one shape:
PostgREST may hand a pgvector column over as a native list, as a JSON
string (``"[0.1,0.2]"``) or as a delimited string (``"{0.1,0.2}"``).
``decode_vector`` normalises all three so retrieval never sniffs formats.
"""

import json
from typing import Any

import numpy as np

from copilot.core.exceptions import VectorDecodeError

_BRACKETS = "[]{}() "


def _as_floats(values: list[Any]) -> list[float]:
    if not values:
        raise VectorDecodeError("Empty vector")
    out = []
    for value in values:
        # bool is an int subclass; a stray true/false is not a coordinate
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise VectorDecodeError(f"Non-numeric vector component: {value!r}")
        out.append(float(value))
    return out


def _parse_delimited(raw: str) -> list[float]:
    body = raw.strip().strip(_BRACKETS)
    if not body:
        raise VectorDecodeError("Empty vector string")
    try:
        return [float(part) for part in body.split(",")]
    except ValueError as e:
        raise VectorDecodeError(f"Unparseable vector string: {raw[:40]!r}") from e


def decode_vector(raw: Any) -> list[float]:
    """
    Decode a stored embedding into a list of floats.

    Tried in a fixed order: native sequence, JSON string, delimited string.

    Args:
        raw: Value of the ``embedding`` column as returned by the store

    Returns:
        Decoded vector

    Raises:
        VectorDecodeError: If no encoding yields a non-empty numeric vector
    """
    if isinstance(raw, np.ndarray):
        raw = raw.tolist()
    if isinstance(raw, (list, tuple)):
        return _as_floats(list(raw))

    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return _as_floats(parsed)
        return _parse_delimited(raw)

    raise VectorDecodeError(f"Unsupported embedding type: {type(raw).__name__}")


def cosine_distance(a: list[float], b: list[float]) -> float | None:
    """
    Cosine distance ``1 - cos(a, b)``, clamped to [0, 2].

    Returns None when the vectors cannot be compared (different lengths
    or a zero-norm vector), so callers exclude the pair instead of
    ordering on NaN.
    """
    if len(a) != len(b) or not a:
        return None

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return None

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    if not np.isfinite(similarity):
        return None
    return min(2.0, max(0.0, 1.0 - similarity))
