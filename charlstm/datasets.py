from __future__ import annotations

from typing import List, NamedTuple, Sequence, Tuple

import torch
import torch.utils.data as data

from .characters import Vocabulary


class Example(NamedTuple):
    context: str
    target: str


def make_examples(stream: str, window_length: int) -> List[Example]:
    if window_length < 1:
        raise ValueError(f"window_length must be positive, got {window_length}")
    return [
        Example(stream[i:i + window_length], stream[i + window_length])
        for i in range(len(stream) - window_length)
    ]


def encode_examples(examples: Sequence[Example], vocab: Vocabulary) -> List[Tuple[List[int], int]]:
    return [(vocab.index(ex.context), vocab.index(ex.target)[0]) for ex in examples]


class WindowDataset(data.Dataset):
    def __init__(self, x: torch.Tensor, y: torch.Tensor):
        if x.shape[0] != y.shape[0]:
            raise ValueError(f"x has {x.shape[0]} rows but y has {y.shape[0]}")
        self.x = x
        self.y = y
    def __len__(self):
        return self.x.shape[0]
    def __getitem__(self, idx):
        return self.x[idx], self.y[idx]
