#!/usr/bin/env python3
"""
Entry point to sample text from a trained model.

Run:
    python3 -m charlstm.generate --artifacts model --samples 100 --temperature 0.5
"""

from __future__ import annotations
import argparse
import sys

import torch
from loguru import logger

from .runtime import CharRNN
from .sampler import make_rng

SAMPLE_SENTENCE = (
    "fox socks box knox knox in box fox in socks knox on fox in socks in box "
    "socks on knox and knox in box fox in socks on box on knox"
)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate text from a trained character-level LSTM.")
    p.add_argument("--artifacts", type=str, required=True, help="Directory holding model.pth and bundle.json")
    p.add_argument("--seed-text", type=str, default=SAMPLE_SENTENCE, help="Text the seed window is cut from")
    p.add_argument("--offset", type=int, default=0, help="Start of the seed window within --seed-text")
    p.add_argument("--samples", type=int, default=100, help="Characters to generate")
    p.add_argument("--temperature", type=float, default=0.0)
    p.add_argument("--rng-seed", type=int, default=None, help="Sampling seed (None=non-deterministic)")
    p.add_argument("--cpu", action="store_true")
    p.add_argument("--log-level", type=str, default="INFO")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level=args.log_level)
    device = torch.device("cuda" if torch.cuda.is_available() and not args.cpu else "cpu")
    logger.info("Loading artifacts {} on {}", args.artifacts, device)

    rnn = CharRNN.from_artifacts(args.artifacts, device=device)
    seed = args.seed_text[args.offset:args.offset + rnn.window_length]
    logger.info("Generating {} characters at temperature {}", args.samples, args.temperature)
    text = rnn.generate(seed, n_samples=args.samples, temperature=args.temperature,
                        rng=make_rng(args.rng_seed))
    print(">" + seed + "\n" + text)


if __name__ == "__main__":
    main()
