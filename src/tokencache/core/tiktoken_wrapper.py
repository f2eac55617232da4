# src/tokencache/core/tiktoken_wrapper.py
import copy
import logging
from pathlib import Path
from typing import Optional

import tiktoken

from tokencache.config import (
    TIKTOKEN_CONFIG_FILENAME,
    TIKTOKEN_DEFAULT_ENCODING,
    TIKTOKEN_FILENAME_HINTS,
    TIKTOKEN_MODEL_FILENAME,
)
from tokencache.errors import TokenizerError
from tokencache.models import Encoding, PaddingParams, TokenizerConfig, TruncationParams

logger = logging.getLogger(__name__)


def _load_config(config_path: Path) -> TokenizerConfig:
    if config_path.exists():
        return TokenizerConfig.from_file(config_path)
    return TokenizerConfig()


def _hinted_encoding(name: str) -> Optional[str]:
    for hints, encoding_name in TIKTOKEN_FILENAME_HINTS:
        if any(hint in name for hint in hints):
            return encoding_name
    return None


def select_encoding_name(config: TokenizerConfig, model_path: Path) -> str:
    """
    Picks one of the public tiktoken tables for a model file.

    The table bytes themselves are not deserialized: the choice comes from the
    side-car pat_str, then the file name, then the enclosing directory name.
    """
    if config.pat_str and "o200k" in config.pat_str:
        return "o200k_base"

    for name in (model_path.name, model_path.parent.name):
        encoding_name = _hinted_encoding(name)
        if encoding_name:
            return encoding_name

    logger.warning(
        "Could not determine tiktoken model type for %s, defaulting to %s",
        model_path, TIKTOKEN_DEFAULT_ENCODING,
    )
    return TIKTOKEN_DEFAULT_ENCODING


def _get_encoding(name: str) -> "tiktoken.Encoding":
    try:
        return tiktoken.get_encoding(name)
    except Exception as e:
        raise TokenizerError(f"Failed to load {name} tokenizer: {e}") from e


class TikTokenWrapper:
    """Wraps a tiktoken Encoding behind the same encode contract as the HuggingFace engine."""

    def __init__(self, encoding: "tiktoken.Encoding", config: Optional[TokenizerConfig] = None):
        self._encoding = encoding
        self._config = config or TokenizerConfig()
        self._truncation: Optional[TruncationParams] = None
        self._padding: Optional[PaddingParams] = None

    @classmethod
    def from_encoding(cls, encoding: "tiktoken.Encoding") -> "TikTokenWrapper":
        return cls(encoding)

    @classmethod
    def from_directory(cls, dir_path: Path) -> "TikTokenWrapper":
        """Loads from a directory holding tiktoken.model and an optional tokenizer_config.json."""
        dir_path = Path(dir_path)
        model_path = dir_path / TIKTOKEN_MODEL_FILENAME
        if not model_path.exists():
            raise TokenizerError(f"{TIKTOKEN_MODEL_FILENAME} not found in {dir_path}")
        config = _load_config(dir_path / TIKTOKEN_CONFIG_FILENAME)
        return cls._from_model_path(model_path, config)

    @classmethod
    def from_model_file(cls, model_path: Path) -> "TikTokenWrapper":
        model_path = Path(model_path)
        if not model_path.exists():
            raise TokenizerError(f"Model file not found: {model_path}")
        config = _load_config(model_path.with_name(TIKTOKEN_CONFIG_FILENAME))
        return cls._from_model_path(model_path, config)

    @classmethod
    def _from_model_path(cls, model_path: Path, config: TokenizerConfig) -> "TikTokenWrapper":
        try:
            model_path.read_bytes()
        except OSError as e:
            raise TokenizerError(f"Failed to read {model_path.name}: {e}") from e
        # TODO: deserialize the table bytes once custom vocabularies need supporting
        encoding = _get_encoding(select_encoding_name(config, model_path))
        return cls(encoding, config)

    @property
    def name(self) -> str:
        return self._encoding.name

    @property
    def config(self) -> TokenizerConfig:
        return self._config

    @property
    def model_max_length(self) -> Optional[int]:
        return self._config.model_max_length

    @property
    def truncation(self) -> Optional[TruncationParams]:
        return self._truncation

    @property
    def padding(self) -> Optional[PaddingParams]:
        return self._padding

    def _token_str(self, token_id: int) -> str:
        try:
            return self._encoding.decode_single_token_bytes(token_id).decode("utf-8")
        except (KeyError, ValueError):
            # Partial UTF-8 sequences and unknown ids
            return f"token_{token_id}"

    def encode(self, text: str, add_special: bool = False) -> Encoding:
        """
        Encodes without special tokens whatever `add_special` says.

        Offsets accumulate the byte length of each decoded token string, so
        they approximate positions rather than index into `text`.
        """
        try:
            ids = self._encoding.encode_ordinary(text)
        except Exception as e:
            raise TokenizerError(f"TikToken tokenizer error: {e}") from e
        if self._truncation is not None and len(ids) > self._truncation.max_length:
            ids = ids[:self._truncation.max_length]

        tokens = [self._token_str(i) for i in ids]

        offsets = []
        current = 0
        for token in tokens:
            token_len = len(token.encode("utf-8"))
            offsets.append((current, current + token_len))
            current += token_len

        return Encoding(
            ids=list(ids),
            type_ids=[0] * len(ids),
            tokens=tokens,
            word_ids=list(range(len(ids))),
            offsets=offsets,
            special_tokens_mask=[0] * len(ids),
            attention_mask=[1] * len(ids),
        )

    def with_truncation(self, truncation: Optional[TruncationParams]) -> "TikTokenWrapper":
        """Returns a copy sharing the same engine, with truncation applied."""
        new = copy.copy(self)
        new._truncation = truncation
        return new

    def with_padding(self, padding: Optional[PaddingParams]) -> "TikTokenWrapper":
        if padding is not None:
            logger.warning("Padding is not supported for TikToken tokenizers")
        new = copy.copy(self)
        new._padding = padding
        return new

    def __repr__(self) -> str:
        return (
            f"TikTokenWrapper(name={self.name!r}, config={self._config!r}, "
            f"truncation={self._truncation!r}, padding={self._padding!r})"
        )
