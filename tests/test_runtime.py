import pytest
import torch

import charlstm
from charlstm import (
    AdapterError, CharRNN, GenerationLoop, InputError, PersistenceError, Phase,
    Vocabulary, make_rng,
)
from charlstm import generate as generate_cli
from charlstm import train as train_cli

CORPUS = "Fox in socks, knox in box!\r\nKnox on fox in socks in box.\r\nSocks on knox and knox in box."


def next_char_adapter(vocab_size):
    """Always predicts the id after the last one in the window."""
    def adapter(x):
        last = int(x[0, -1].argmax())
        probs = torch.zeros(1, vocab_size)
        probs[0, (last + 1) % vocab_size] = 1.0
        return probs
    return adapter


def test_generation_loop_slides_window():
    vocab = Vocabulary.from_text("abcd")
    seen = []
    inner = next_char_adapter(vocab.size)

    def adapter(x):
        seen.append(vocab.read(x[0].argmax(dim=-1).tolist()))
        return inner(x)

    loop = GenerationLoop(adapter, vocab, "abc", 3, n_samples=5, temperature=1.0, rng=make_rng(0))
    assert loop.run() == "dabcd"
    assert seen == ["abc", "bcd", "cda", "dab", "abc"]
    assert loop.phase is Phase.DONE


def test_generation_loop_phases():
    vocab = Vocabulary.from_text("ab")
    loop = GenerationLoop(next_char_adapter(2), vocab, "a", 1, n_samples=2)
    assert loop.phase is Phase.SEEDED
    phases = []
    while loop.phase is not Phase.DONE:
        loop.step()
        phases.append(loop.phase)
    assert phases == [Phase.SAMPLING, Phase.APPENDED, Phase.SAMPLING, Phase.DONE]
    assert "".join(loop.generated) == "ba"


def test_zero_samples_is_done():
    vocab = Vocabulary.from_text("ab")
    loop = GenerationLoop(next_char_adapter(2), vocab, "ab", 2, n_samples=0)
    assert loop.phase is Phase.DONE
    assert loop.run() == ""


def test_seed_errors():
    vocab = Vocabulary.from_text("abc")
    with pytest.raises(InputError, match="exactly 3"):
        GenerationLoop(next_char_adapter(3), vocab, "ab", 3, n_samples=1)
    with pytest.raises(InputError, match="'z'"):
        GenerationLoop(next_char_adapter(3), vocab, "abz", 3, n_samples=1)


def test_adapter_shape_mismatch():
    vocab = Vocabulary.from_text("abc")
    loop = GenerationLoop(lambda x: torch.ones(2, 3) / 3, vocab, "abc", 3, n_samples=1)
    with pytest.raises(AdapterError):
        loop.run()


@pytest.mark.parametrize("bad", [
    [0.5, float("nan"), 0.5],
    [1.2, -0.2, 0.0],
    [float("inf"), 0.0, 0.0],
])
def test_adapter_bad_probabilities(bad):
    vocab = Vocabulary.from_text("abc")
    loop = GenerationLoop(lambda x: torch.tensor([bad]), vocab, "abc", 3, n_samples=1)
    with pytest.raises(AdapterError, match="non-finite or negative"):
        loop.run()


def test_adapter_failure_propagates():
    vocab = Vocabulary.from_text("abc")

    def broken(x):
        raise RuntimeError("backend down")

    loop = GenerationLoop(broken, vocab, "abc", 3, n_samples=4)
    with pytest.raises(RuntimeError, match="backend down"):
        loop.run()
    assert loop.generated == []


def test_fit_and_generate(tmp_path):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text(CORPUS, encoding="utf-8")
    outdir = tmp_path / "run"
    rnn = charlstm.fit(str(corpus), window_length=8, units=16, epochs=2, batch_size=8,
                       seed=0, outdir=str(outdir), use_cpu=True)
    for name in ("model.pth", "bundle.json", "history.json", "config.json", "README.txt"):
        assert (outdir / name).exists()

    text = charlstm.clean_text(CORPUS)
    assert rnn.window_length == 8
    assert rnn.bundle.num_examples == len(text) - 8
    assert rnn.vocab == Vocabulary.from_text(text)

    out = rnn.generate(text, n_samples=30, temperature=0.5, rng=make_rng(1))
    assert len(out) == 30
    assert set(out) <= set(text)

    again = CharRNN.from_artifacts(outdir, device=torch.device("cpu"))
    probs = again.predict(torch.zeros(1, 8, rnn.vocab.size))
    assert probs.shape == (1, rnn.vocab.size)
    assert torch.allclose(probs.sum(), torch.tensor(1.0))


def test_corpus_shorter_than_window(tmp_path):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text("fox", encoding="utf-8")
    with pytest.raises(InputError, match="window_length"):
        charlstm.fit(str(corpus), window_length=3, epochs=1, outdir=str(tmp_path / "run"), use_cpu=True)


def test_empty_corpus(tmp_path):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text("", encoding="utf-8")
    with pytest.raises(InputError):
        charlstm.fit(str(corpus), window_length=3, epochs=1, outdir=str(tmp_path / "run"), use_cpu=True)


def test_missing_model_weights(tmp_path):
    charlstm.Bundle.from_vocabulary(Vocabulary.from_text("ab"), 2, 1).save(tmp_path / "bundle.json")
    with pytest.raises(PersistenceError, match="model.pth"):
        CharRNN.from_artifacts(tmp_path, device=torch.device("cpu"))
    with pytest.raises(PersistenceError, match="bundle"):
        charlstm.load(str(tmp_path / "nowhere"))


def test_cli_train_then_sample(tmp_path, capsys):
    corpus = tmp_path / "corpus.txt"
    corpus.write_text(CORPUS, encoding="utf-8")
    outdir = tmp_path / "run"
    train_cli.main(["--corpus", str(corpus), "--window-length", "10", "--units", "8",
                    "--epochs", "1", "--batch-size", "16", "--seed", "0",
                    "--outdir", str(outdir), "--cpu", "--log-level", "WARNING"])
    assert (outdir / "bundle.json").exists()

    generate_cli.main(["--artifacts", str(outdir), "--samples", "12", "--temperature", "1.0",
                     "--rng-seed", "3", "--cpu", "--log-level", "WARNING"])
    out = capsys.readouterr().out
    first, second = out.rstrip("\n").split("\n")
    assert first == ">" + generate_cli.SAMPLE_SENTENCE[:10]
    assert len(second) == 12


def test_trainer_default_config_not_shared(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "corpi").mkdir()
    (tmp_path / "corpi" / "foxinsocks.txt").write_text(CORPUS * 2, encoding="utf-8")
    first = charlstm.CharTrainer(autostart=False)
    second = charlstm.CharTrainer(autostart=False)
    assert first.cfg == charlstm.TrainerConfig()
    assert first.cfg is not second.cfg
    assert (tmp_path / first.outdir).is_dir()
