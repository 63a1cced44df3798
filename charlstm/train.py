#!/usr/bin/env python3
"""
Entry point to train a character-level LSTM via CharTrainer.

Run:
    python3 -m charlstm.train --corpus corpi/foxinsocks.txt --epochs 50 --outdir model
"""

from __future__ import annotations
import argparse
import sys

from loguru import logger

from .trainer import CharTrainer, TrainerConfig


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Train a character-level LSTM on a text corpus.")
    p.add_argument("--corpus", type=str, default="corpi/foxinsocks.txt", help="UTF-8 text file to train on")
    p.add_argument("--window-length", type=int, default=50, help="Characters of context per example")
    p.add_argument("--units", type=int, default=128, help="LSTM hidden units")
    p.add_argument("--dropout", type=float, default=0.2)
    p.add_argument("--epochs", type=int, default=50)
    p.add_argument("--batch-size", type=int, default=20)
    p.add_argument("--lr", type=float, default=1e-3)
    p.add_argument("--seed", type=int, default=None, help="Training seed (None=non-deterministic)")
    p.add_argument("--outdir", type=str, default=None)
    p.add_argument("--cpu", action="store_true")
    p.add_argument("--log-level", type=str, default="INFO")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level)
    cfg = TrainerConfig(
        corpus=args.corpus,
        window_length=args.window_length,
        units=args.units,
        dropout=args.dropout,
        epochs=args.epochs,
        batch_size=args.batch_size,
        lr=args.lr,
        seed=args.seed,
        outdir=args.outdir,
        use_cpu=args.cpu,
    )
    # Training runs during initialization
    CharTrainer(cfg=cfg, autostart=True)


if __name__ == "__main__":
    main()
