"""One-hot tensors for training batches and single inference windows.

Training:  x [n_examples, window_length, vocab_size], y [n_examples, vocab_size]
Inference: x [1, window_length, vocab_size]
"""

from __future__ import annotations

from typing import List, Sequence, Tuple, Union

import torch

from .errors import EncodingError


def _check_id(i, vocab_size: int, where: str) -> int:
    if isinstance(i, bool) or not isinstance(i, int):
        raise EncodingError(f"id {i!r} at {where} is not an integer")
    if not 0 <= i < vocab_size:
        raise EncodingError(f"id {i} at {where} is outside [0, {vocab_size})")
    return i


def _check_size(vocab_size: int) -> None:
    if vocab_size < 1:
        raise EncodingError(f"vocab_size must be positive, got {vocab_size}")


def one_hot_examples(
    encoded: Sequence[Tuple[Sequence[int], int]],
    window_length: int,
    vocab_size: int,
) -> Tuple[torch.Tensor, torch.Tensor]:
    _check_size(vocab_size)
    n = len(encoded)
    x = torch.empty((n, window_length, vocab_size), dtype=torch.float32)
    y = torch.empty((n, vocab_size), dtype=torch.float32)
    for k, (context, target) in enumerate(encoded):
        if len(context) != window_length:
            raise EncodingError(
                f"example {k} has context length {len(context)}, expected {window_length}"
            )
        for pos, i in enumerate(context):
            i = _check_id(i, vocab_size, f"example {k} position {pos}")
            x[k, pos].zero_()
            x[k, pos, i] = 1.0
        t = _check_id(target, vocab_size, f"example {k} target")
        y[k].zero_()
        y[k, t] = 1.0
    return x, y


def one_hot_sequence(ids: Sequence[int], vocab_size: int) -> torch.Tensor:
    _check_size(vocab_size)
    x = torch.empty((1, len(ids), vocab_size), dtype=torch.float32)
    for pos, i in enumerate(ids):
        i = _check_id(i, vocab_size, f"position {pos}")
        x[0, pos].zero_()
        x[0, pos, i] = 1.0
    return x


def decode_one_hot(tensor: torch.Tensor) -> Union[List[int], List[List[int]]]:
    """Argmax over the last dimension; rank 2 gives a list, rank 3 a list of lists."""
    if tensor.ndim not in (2, 3):
        raise EncodingError(f"expected a rank 2 or 3 tensor, got shape {tuple(tensor.shape)}")
    return tensor.argmax(dim=-1).tolist()
