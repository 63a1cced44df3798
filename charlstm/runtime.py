from __future__ import annotations
import enum
import json
import pickle
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

import torch
from loguru import logger

from .bundle import Bundle
from .characters import Vocabulary
from .encoding import one_hot_sequence
from .errors import AdapterError, InputError, PersistenceError
from .model import Architecture
from .sampler import sample

# x [1, W, V] -> probabilities [1, V] or [V]
Adapter = Callable[[torch.Tensor], torch.Tensor]


class Phase(enum.Enum):
    SEEDED = "seeded"
    SAMPLING = "sampling"
    APPENDED = "appended"
    DONE = "done"


class GenerationLoop:
    """Slide a window over the seed, asking the adapter for one character at a time.

    SEEDED -> SAMPLING -> APPENDED -> SAMPLING ... -> DONE. Exceptions from
    the adapter propagate unchanged and leave the loop where it stopped.
    """

    def __init__(self, adapter: Adapter, vocab: Vocabulary, seed: str, window_length: int,
                 n_samples: int, temperature: float = 0.0, rng: Optional[random.Random] = None):
        if len(seed) != window_length:
            raise InputError(f"seed must be exactly {window_length} characters, got {len(seed)}")
        if n_samples < 0:
            raise InputError(f"n_samples must be >= 0, got {n_samples}")
        self.window = vocab.index(seed)
        self.adapter = adapter
        self.vocab = vocab
        self.seed = seed
        self.n_samples = n_samples
        self.temperature = temperature
        self.rng = rng
        self.generated: list[str] = []
        self.phase = Phase.SEEDED if n_samples else Phase.DONE
        self._probs: Optional[torch.Tensor] = None

    def _predict(self) -> torch.Tensor:
        x = one_hot_sequence(self.window, self.vocab.size)
        probs = self.adapter(x)
        if not isinstance(probs, torch.Tensor):
            probs = torch.as_tensor(probs)
        if probs.ndim == 2 and probs.shape[0] == 1:
            probs = probs[0]
        if tuple(probs.shape) != (self.vocab.size,):
            raise AdapterError(
                f"adapter returned shape {tuple(probs.shape)}, expected [{self.vocab.size}] or [1, {self.vocab.size}]"
            )
        if not torch.isfinite(probs).all() or (probs < 0).any():
            raise AdapterError(f"adapter returned non-finite or negative probabilities: {probs.tolist()}")
        return probs

    def step(self) -> Optional[str]:
        """Advance one transition; returns the character appended, if any."""
        if self.phase in (Phase.SEEDED, Phase.APPENDED):
            self._probs = self._predict()
            self.phase = Phase.SAMPLING
            return None
        if self.phase is Phase.SAMPLING:
            i = sample(self._probs, self.temperature, self.rng)
            ch = self.vocab.read([i])
            self.generated.append(ch)
            self.window = self.window[1:] + [i]
            self._probs = None
            self.phase = Phase.APPENDED if len(self.generated) < self.n_samples else Phase.DONE
            return ch
        return None

    def __iter__(self) -> Iterator[str]:
        while self.phase is not Phase.DONE:
            ch = self.step()
            if ch is not None:
                yield ch

    def run(self) -> str:
        for _ in self:
            pass
        return "".join(self.generated)


@dataclass
class CharRNN:
    model: Architecture
    bundle: Bundle
    device: torch.device
    outdir: Optional[Path] = None

    @property
    def vocab(self) -> Vocabulary:
        return self.bundle.vocabulary()

    @property
    def window_length(self) -> int:
        return self.bundle.sequence_length

    def predict(self, x: torch.Tensor) -> torch.Tensor:
        return self.model.predict(x.to(self.device)).cpu()

    def generate(self, text: str, n_samples: int = 100, temperature: float = 0.0,
                 offset: int = 0, rng: Optional[random.Random] = None) -> str:
        seed = text[offset:offset + self.window_length]
        loop = GenerationLoop(self.predict, self.vocab, seed, self.window_length,
                              n_samples, temperature=temperature, rng=rng)
        return loop.run()

    @classmethod
    def from_artifacts(cls, path: Union[str, Path], device: Optional[torch.device] = None) -> "CharRNN":
        path = Path(path); device = device or torch.device("cuda" if torch.cuda.is_available() else "cpu")
        bundle = Bundle.load(path / "bundle.json")
        units, dropout = 128, 0.2
        cfg = path / "config.json"
        if cfg.exists():
            try:
                saved = json.loads(cfg.read_text(encoding="utf-8"))
                units = int(saved.get("units", units)); dropout = float(saved.get("dropout", dropout))
            except (OSError, ValueError, TypeError, AttributeError) as exc:
                raise PersistenceError(f"cannot read {cfg}: {exc}") from exc
        model = Architecture(bundle.char_set_size, bundle.sequence_length, units=units, dropout=dropout).to(device)
        weights = path / "model.pth"
        if not weights.exists():
            raise PersistenceError(f"model weights not found: {weights}")
        try:
            model.load_state_dict(torch.load(weights, map_location=device))
        except (RuntimeError, OSError, EOFError, pickle.UnpicklingError) as exc:
            raise PersistenceError(f"cannot load model weights {weights}: {exc}") from exc
        model.eval()
        logger.debug("Loaded model ({} chars, window {}) from {}", bundle.char_set_size, bundle.sequence_length, path)
        return cls(model=model, bundle=bundle, device=device, outdir=path)
