from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

from loguru import logger

from .characters import Vocabulary
from .errors import EncodingError, PersistenceError

FIELDS = ("numExamples", "charSetSize", "sequenceLength", "charToId", "idToChar")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Bundle:
    """Vocabulary plus the metadata needed to encode exactly as at training time.

    Serialized as JSON with the field names in ``FIELDS``; ``idToChar`` keys
    are decimal strings.
    """
    num_examples: int
    char_set_size: int
    sequence_length: int
    char_to_id: Dict[str, int] = field(default_factory=dict)
    id_to_char: Dict[int, str] = field(default_factory=dict)

    @classmethod
    def from_vocabulary(cls, vocab: Vocabulary, sequence_length: int, num_examples: int) -> "Bundle":
        return cls(
            num_examples=num_examples,
            char_set_size=vocab.size,
            sequence_length=sequence_length,
            char_to_id=dict(vocab.char_to_id),
            id_to_char=dict(vocab.id_to_char),
        )

    def vocabulary(self) -> Vocabulary:
        return Vocabulary(self.id_to_char)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "numExamples": self.num_examples,
            "charSetSize": self.char_set_size,
            "sequenceLength": self.sequence_length,
            "charToId": dict(self.char_to_id),
            "idToChar": {str(i): ch for i, ch in self.id_to_char.items()},
        }

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "Bundle":
        if not isinstance(obj, dict):
            raise PersistenceError(f"bundle must be a JSON object, got {type(obj).__name__}")
        missing = [k for k in FIELDS if k not in obj]
        if missing:
            raise PersistenceError(f"bundle is missing fields: {', '.join(missing)}")
        for key in ("numExamples", "charSetSize", "sequenceLength"):
            if not _is_int(obj[key]):
                raise PersistenceError(f"bundle {key} must be an integer, got {obj[key]!r}")
        if obj["numExamples"] < 0:
            raise PersistenceError(f"bundle numExamples must be >= 0, got {obj['numExamples']}")
        char_to_id, id_to_char = obj["charToId"], obj["idToChar"]
        if not isinstance(char_to_id, dict) or not isinstance(id_to_char, dict):
            raise PersistenceError("bundle charToId and idToChar must be JSON objects")
        for c, i in char_to_id.items():
            if not _is_int(i):
                raise PersistenceError(f"bundle charToId[{c!r}] must be an integer, got {i!r}")
        for i, c in id_to_char.items():
            if not isinstance(c, str):
                raise PersistenceError(f"bundle idToChar[{i!r}] must be a string, got {c!r}")
            if not (isinstance(i, str) and i.isdigit()):
                raise PersistenceError(f"bundle idToChar key {i!r} is not a decimal id")
        bundle = cls(
            num_examples=obj["numExamples"],
            char_set_size=obj["charSetSize"],
            sequence_length=obj["sequenceLength"],
            char_to_id=dict(char_to_id),
            id_to_char={int(i): c for i, c in id_to_char.items()},
        )
        bundle.validate()
        return bundle

    def validate(self) -> None:
        try:
            vocab = self.vocabulary()
        except EncodingError as exc:
            raise PersistenceError(f"bundle idToChar is not a valid vocabulary: {exc}") from exc
        if vocab.char_to_id != self.char_to_id:
            raise PersistenceError("bundle charToId and idToChar are not inverses of each other")
        if vocab.size != self.char_set_size:
            raise PersistenceError(
                f"bundle charSetSize is {self.char_set_size} but idToChar has {vocab.size} entries"
            )
        if self.sequence_length < 1:
            raise PersistenceError(f"bundle sequenceLength must be positive, got {self.sequence_length}")

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        logger.debug("Wrote bundle ({} chars, window {}) to {}", self.char_set_size, self.sequence_length, path)
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "Bundle":
        path = Path(path)
        try:
            obj = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise PersistenceError(f"bundle not found: {path}") from exc
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"cannot read bundle {path}: {exc}") from exc
        return cls.from_dict(obj)
