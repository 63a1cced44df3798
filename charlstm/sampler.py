"""Temperature-scaled categorical sampling over a probability vector.

The draw is plain CDF inversion on a ``random.Random`` so results are
reproducible from a seed and do not depend on the model backend.
"""

from __future__ import annotations

import math
import random
from typing import Optional, Sequence, Union

import torch

MIN_TEMPERATURE = 1e-6


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def _as_floats(probs: Union[Sequence[float], torch.Tensor]) -> list:
    if isinstance(probs, torch.Tensor):
        probs = probs.detach().squeeze()
        if probs.ndim == 0:
            probs = probs.reshape(1)
        if probs.ndim != 1:
            raise ValueError(f"expected a probability vector, got shape {tuple(probs.shape)}")
        return [float(p) for p in probs.tolist()]
    return [float(p) for p in probs]


def scaled_logits(probs: Sequence[float], temperature: float) -> list:
    """log(p) / T with T clamped to MIN_TEMPERATURE; p == 0 gives -inf."""
    t = max(temperature, MIN_TEMPERATURE)
    return [math.log(p) / t if p > 0 else -math.inf for p in probs]


def sample(
    probs: Union[Sequence[float], torch.Tensor],
    temperature: float = 1.0,
    rng: Optional[random.Random] = None,
) -> int:
    """Draw one id from softmax(log(probs) / temperature).

    temperature 0 means "as close to arg-max as floating point allows": it is
    clamped to MIN_TEMPERATURE rather than treated as an exact arg-max.
    """
    if temperature < 0 or math.isnan(temperature):
        raise ValueError(f"temperature must be >= 0, got {temperature}")
    p = _as_floats(probs)
    if not p:
        raise ValueError("cannot sample from an empty probability vector")
    if any(math.isnan(v) or v < 0 for v in p):
        raise ValueError(f"probabilities must be non-negative numbers, got {p}")
    if not any(v > 0 for v in p):
        raise ValueError("probability vector has no positive entry")

    logits = scaled_logits(p, temperature)
    top = max(logits)
    weights = [math.exp(v - top) if v != -math.inf else 0.0 for v in logits]
    total = sum(weights)

    rng = rng if rng is not None else random
    u = rng.random() * total
    acc = 0.0
    last = None
    for i, w in enumerate(weights):
        if w <= 0.0:
            continue
        acc += w
        last = i
        if u < acc:
            return i
    # float rounding can leave u == total
    return last
