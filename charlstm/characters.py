from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Union

from loguru import logger

from .errors import EncodingError, InputError

PUNCTUATION = re.compile(r"[!,.]")
WHITESPACE_RUN = re.compile(r"\s\s+")


def clean_text(text: str) -> str:
    """Lowercase, blank out punctuation and line returns, squeeze whitespace."""
    clean = text.lower()
    clean = PUNCTUATION.sub(" ", clean)
    clean = clean.replace("\r\n", " ")
    return WHITESPACE_RUN.sub(" ", clean)


def read_corpus(path: Union[str, Path]) -> str:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"cannot read corpus {path}: {exc}") from exc
    logger.debug("Read {} characters from {}", len(text), path)
    return text


class Vocabulary:
    """Bijection between the characters of a corpus and dense ids [0, size)."""

    def __init__(self, id_to_char: Mapping[int, str]):
        if not id_to_char:
            raise EncodingError("vocabulary is empty")
        ids = sorted(id_to_char)
        if ids != list(range(len(ids))):
            raise EncodingError(f"vocabulary ids are not dense from 0: {ids[:10]}...")
        self.id_to_char: Dict[int, str] = {i: id_to_char[i] for i in ids}
        self.char_to_id: Dict[str, int] = {}
        for i, ch in self.id_to_char.items():
            if not isinstance(ch, str) or len(ch) != 1:
                raise EncodingError(f"vocabulary entry {i} is not a single character: {ch!r}")
            if ch in self.char_to_id:
                raise EncodingError(f"character {ch!r} assigned to ids {self.char_to_id[ch]} and {i}")
            self.char_to_id[ch] = i

    @classmethod
    def from_text(cls, stream: str) -> "Vocabulary":
        if not stream:
            raise InputError("cannot build a vocabulary from an empty character stream")
        # dict preserves first-occurrence order
        chars = dict.fromkeys(stream)
        return cls(dict(enumerate(chars)))

    @property
    def size(self) -> int:
        return len(self.id_to_char)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, ch: object) -> bool:
        return ch in self.char_to_id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self.id_to_char == other.id_to_char

    def __repr__(self) -> str:
        return f"Vocabulary(size={self.size}, chars={''.join(self.id_to_char.values())!r})"

    def index(self, text: str) -> List[int]:
        ids = []
        for pos, ch in enumerate(text):
            if ch not in self.char_to_id:
                raise InputError(f"character {ch!r} at position {pos} is not in the vocabulary")
            ids.append(self.char_to_id[ch])
        return ids

    def read(self, ids: Iterable[int]) -> str:
        chars = []
        for pos, i in enumerate(ids):
            i = int(i)
            if i not in self.id_to_char:
                raise EncodingError(f"id {i} at position {pos} is outside [0, {self.size})")
            chars.append(self.id_to_char[i])
        return "".join(chars)
