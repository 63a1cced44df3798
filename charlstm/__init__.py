import torch

from .bundle import Bundle
from .characters import Vocabulary, clean_text, read_corpus
from .datasets import Example, WindowDataset, make_examples, encode_examples
from .encoding import one_hot_examples, one_hot_sequence, decode_one_hot
from .errors import CharLSTMError, InputError, EncodingError, PersistenceError, AdapterError
from .model import Architecture
from .sampler import sample, make_rng
from .trainer import CharTrainer, TrainerConfig
from .runtime import CharRNN, GenerationLoop, Phase

__all__ = [
    "Bundle", "Vocabulary", "clean_text", "read_corpus",
    "Example", "WindowDataset", "make_examples", "encode_examples",
    "one_hot_examples", "one_hot_sequence", "decode_one_hot",
    "CharLSTMError", "InputError", "EncodingError", "PersistenceError", "AdapterError",
    "Architecture", "sample", "make_rng",
    "CharTrainer", "TrainerConfig", "CharRNN", "GenerationLoop", "Phase",
    "fit", "load",
]
__version__ = "0.1.0"

def fit(corpus: str, *,
        window_length: int = 50,
        units: int = 128,
        dropout: float = 0.2,
        epochs: int = 50,
        batch_size: int = 20,
        lr: float = 1e-3,
        seed: int | None = None,          # training RNG (None = random)
        outdir: str | None = None,
        use_cpu: bool = False) -> CharRNN:
    """Train a model on a corpus file and return a CharRNN runtime."""
    cfg = TrainerConfig(
        corpus=corpus, window_length=window_length, units=units, dropout=dropout,
        epochs=epochs, batch_size=batch_size, lr=lr, seed=seed,
        outdir=outdir, use_cpu=use_cpu
    )
    trainer = CharTrainer(cfg=cfg, autostart=True)
    device = torch.device("cpu") if use_cpu else None
    return CharRNN.from_artifacts(trainer.outdir, device=device)

def load(path: str) -> CharRNN:
    """Load a previously trained model from an artifacts folder."""
    return CharRNN.from_artifacts(path)
