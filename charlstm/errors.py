class CharLSTMError(Exception):
    """Base class for every error raised by charlstm."""


class InputError(CharLSTMError, ValueError):
    """Bad corpus or seed text: empty, too short, or outside the vocabulary."""


class EncodingError(CharLSTMError, ValueError):
    """An id or vocabulary that cannot be encoded (vocabulary/bundle mismatch)."""


class PersistenceError(CharLSTMError):
    """Bundle or model artifacts missing or corrupt."""


class AdapterError(CharLSTMError):
    """The model returned something the sampler cannot use."""
