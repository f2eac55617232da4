# src/tokencache/core/hf_wrapper.py
from pathlib import Path
from typing import Optional

from tokenizers import Tokenizer

from tokencache.errors import TokenizerError
from tokencache.models import Encoding, PaddingParams, TruncationParams


class HuggingFaceWrapper:
    """Thin pass-through to a tokenizers.Tokenizer; truncation and padding are native."""

    def __init__(self, tokenizer: Tokenizer):
        self._tokenizer = tokenizer

    @classmethod
    def from_file(cls, path: Path) -> "HuggingFaceWrapper":
        try:
            tokenizer = Tokenizer.from_file(str(path))
        except Exception as e:
            raise TokenizerError(f"failed to load HuggingFace tokenizer from {path}: {e}") from e
        tokenizer.no_truncation()
        tokenizer.no_padding()
        return cls(tokenizer)

    @property
    def truncation(self) -> Optional[dict]:
        return self._tokenizer.truncation

    @property
    def padding(self) -> Optional[dict]:
        return self._tokenizer.padding

    def encode(self, text: str, add_special: bool = False) -> Encoding:
        try:
            encoding = self._tokenizer.encode(text, add_special_tokens=add_special)
        except Exception as e:
            raise TokenizerError(f"HuggingFace tokenizer error: {e}") from e
        return Encoding.from_hf(encoding)

    def _clone(self) -> Tokenizer:
        return Tokenizer.from_str(self._tokenizer.to_str())

    def with_truncation(self, truncation: Optional[TruncationParams]) -> "HuggingFaceWrapper":
        tokenizer = self._clone()
        if truncation is None:
            tokenizer.no_truncation()
        else:
            tokenizer.enable_truncation(
                truncation.max_length,
                stride=truncation.stride,
                strategy=truncation.strategy,
                direction=truncation.direction,
            )
        return HuggingFaceWrapper(tokenizer)

    def with_padding(self, padding: Optional[PaddingParams]) -> "HuggingFaceWrapper":
        tokenizer = self._clone()
        if padding is None:
            tokenizer.no_padding()
        else:
            tokenizer.enable_padding(
                direction=padding.direction,
                pad_id=padding.pad_id,
                pad_type_id=padding.pad_type_id,
                pad_token=padding.pad_token,
                length=padding.length,
                pad_to_multiple_of=padding.pad_to_multiple_of,
            )
        return HuggingFaceWrapper(tokenizer)
