from __future__ import annotations

import json
import random
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any

import torch
import torch.nn as nn
import torch.utils.data as data
from loguru import logger

from .bundle import Bundle
from .characters import Vocabulary, clean_text, read_corpus
from .datasets import WindowDataset, encode_examples, make_examples
from .encoding import one_hot_examples
from .errors import InputError
from .model import Architecture


@dataclass
class TrainerConfig:
    corpus: str = "corpi/foxinsocks.txt"
    window_length: int = 50
    units: int = 128
    dropout: float = 0.2
    epochs: int = 50
    batch_size: int = 20
    lr: float = 1e-3
    seed: int | None = None          # training RNG (None = non-deterministic)
    outdir: str | None = None        # default artifacts/YYYYMMDD-HHMMSS
    use_cpu: bool = False            # force CPU


class CharTrainer:
    """
    Trains a character-level LSTM on a text corpus.

    Instantiating this class runs training if autostart=True.

    Artifacts:
      - model.pth
      - bundle.json    (vocabulary + window length, needed to sample)
      - history.json   (per-epoch metrics)
      - config.json    (TrainerConfig)
      - README.txt
    """
    def __init__(self, cfg: TrainerConfig | None = None, autostart: bool = True):
        cfg = cfg or TrainerConfig()
        self.cfg = cfg
        self.device = torch.device("cpu" if cfg.use_cpu or not torch.cuda.is_available() else "cuda")

        if cfg.seed is not None:
            torch.manual_seed(cfg.seed)
            random.seed(cfg.seed)
            if self.device.type == "cuda":
                torch.cuda.manual_seed_all(cfg.seed)

        logger.info("Generating training data from corpus {}", cfg.corpus)
        self.text = clean_text(read_corpus(cfg.corpus))
        logger.info("> length = {}", len(self.text))
        self.vocab = Vocabulary.from_text(self.text)
        logger.info("> unique chars = {}", self.vocab.size)

        examples = make_examples(self.text, cfg.window_length)
        logger.info("> n examples = {}", len(examples))
        if not examples:
            raise InputError(
                f"corpus has {len(self.text)} characters after cleaning; "
                f"need at least window_length + 1 = {cfg.window_length + 1}"
            )
        x, y = one_hot_examples(encode_examples(examples, self.vocab), cfg.window_length, self.vocab.size)
        self.dataset = WindowDataset(x, y)
        self.loader = data.DataLoader(self.dataset, batch_size=cfg.batch_size, shuffle=True)
        self.bundle = Bundle.from_vocabulary(self.vocab, cfg.window_length, len(examples))

        self.model = Architecture(
            self.vocab.size, cfg.window_length, units=cfg.units, dropout=cfg.dropout
        ).to(self.device)
        n_params = sum(p.numel() for p in self.model.parameters())
        logger.info("Model: {} ({:,} parameters)", self.model, n_params)

        # targets are one-hot rows; CrossEntropyLoss takes them as class ids
        self.criterion = nn.CrossEntropyLoss()
        self.opt = torch.optim.Adam(self.model.parameters(), lr=cfg.lr)

        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.outdir = Path(cfg.outdir or f"artifacts/{ts}")
        self.outdir.mkdir(parents=True, exist_ok=True)

        self.history: List[Dict[str, Any]] = []

        if autostart:
            self.run()

    # -------- public API --------
    def run(self):
        for epoch in range(1, self.cfg.epochs + 1):
            loss, acc = self._train_one()
            self.history.append({"epoch": epoch, "loss": loss, "acc": acc})
            logger.info("Epoch {:03d} | loss {:.4f} acc {:.3f}", epoch, loss, acc)
        self._finalize()
        logger.info("Saved model to {}", self.outdir)

    # -------- internals --------
    def _train_one(self) -> tuple[float, float]:
        self.model.train()
        total, correct, count = 0.0, 0, 0
        for x, y in self.loader:
            x = x.to(self.device)
            target = y.argmax(dim=-1).to(self.device)
            self.opt.zero_grad(set_to_none=True)
            logits = self.model(x)  # [B, V]
            loss = self.criterion(logits, target)
            loss.backward()
            self.opt.step()
            total += loss.item() * target.size(0)
            correct += (logits.argmax(dim=-1) == target).sum().item()
            count += target.size(0)
        return total / max(count, 1), correct / max(count, 1)

    def _finalize(self):
        torch.save(self.model.state_dict(), self.outdir / "model.pth")
        self.bundle.save(self.outdir / "bundle.json")

        (self.outdir / "history.json").write_text(json.dumps(self.history, indent=2), encoding="utf-8")
        (self.outdir / "config.json").write_text(json.dumps(asdict(self.cfg), indent=2), encoding="utf-8")

        (self.outdir / "README.txt").write_text(
            "Artifacts for a character-level LSTM.\n"
            f"- corpus: {self.cfg.corpus}\n"
            f"- device: {self.device}\n"
            f"- see config.json for full TrainerConfig\n"
            f"- see bundle.json for the vocabulary and window length\n",
            encoding="utf-8",
        )
