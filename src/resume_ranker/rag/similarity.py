"""Bounded cosine similarity over vectors of possibly different lengths.

Vectors from different providers (or a remote provider that fell back to
the local vectorizer for one text) need not share a dimension.  They are
reconciled by comparing only their common prefix.

The result is always a finite float in [0.0, 1.0].  Negative similarity
is reported as 0.0: every vector this project produces has non-negative
weights, so a negative cosine only arises from noise.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from numbers import Real
from typing import TypeGuard

logger = logging.getLogger(__name__)


def _is_numeric_sequence(value: object) -> TypeGuard[Sequence[float]]:
    if value is None or isinstance(value, (str, bytes, Mapping)):
        return False
    if not isinstance(value, Sequence):
        return False
    return all(isinstance(x, Real) and not isinstance(x, bool) for x in value)


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Return the cosine similarity of *a* and *b*, clamped to [0.0, 1.0].

    Missing, non-numeric, empty and zero-magnitude inputs all yield 0.0.
    When lengths differ only the first ``min(len(a), len(b))`` components
    are compared.
    """
    if not _is_numeric_sequence(a) or not _is_numeric_sequence(b):
        return 0.0

    n = min(len(a), len(b))
    if n == 0:
        return 0.0
    if len(a) != len(b):
        logger.debug("Reconciling vector dimensions %d and %d to %d", len(a), len(b), n)

    dot = 0.0
    mag_a = 0.0
    mag_b = 0.0
    for x, y in zip(a[:n], b[:n], strict=True):
        dot += x * y
        mag_a += x * x
        mag_b += y * y

    mag_a = math.sqrt(mag_a)
    mag_b = math.sqrt(mag_b)
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0

    similarity = dot / (mag_a * mag_b)
    if not math.isfinite(similarity):
        logger.warning("Non-finite similarity %r coerced to 0.0", similarity)
        return 0.0
    return max(0.0, min(1.0, similarity))
