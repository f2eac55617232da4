# src/tokencache/core/unified.py
from dataclasses import dataclass
from typing import Optional, Union

from tokencache.core.detector import TokenizerFormat
from tokencache.core.hf_wrapper import HuggingFaceWrapper
from tokencache.core.tiktoken_wrapper import TikTokenWrapper
from tokencache.models import Encoding, PaddingParams, TruncationParams

# The closed set of variants; a new format needs an entry here and an adapter
_ENGINE_TYPES = {
    TokenizerFormat.HUGGINGFACE: HuggingFaceWrapper,
    TokenizerFormat.TIKTOKEN: TikTokenWrapper,
}


@dataclass(frozen=True)
class UnifiedTokenizer:
    """
    Either a HuggingFace or a TikToken tokenizer behind one encode call.

    Instances are immutable and shared freely between callers. The
    configuration setters return a new instance; the original keeps encoding
    the way it did.
    """
    kind: TokenizerFormat
    engine: Union[HuggingFaceWrapper, TikTokenWrapper]

    def __post_init__(self):
        expected = _ENGINE_TYPES.get(self.kind)
        if expected is None:
            raise ValueError(f"unsupported tokenizer kind: {self.kind}")
        if not isinstance(self.engine, expected):
            raise TypeError(f"{self.kind.value} tokenizer needs a {expected.__name__}, got {type(self.engine).__name__}")

    @classmethod
    def huggingface(cls, wrapper: HuggingFaceWrapper) -> "UnifiedTokenizer":
        return cls(TokenizerFormat.HUGGINGFACE, wrapper)

    @classmethod
    def tiktoken(cls, wrapper: TikTokenWrapper) -> "UnifiedTokenizer":
        return cls(TokenizerFormat.TIKTOKEN, wrapper)

    def encode(self, text: str, add_special: bool = False) -> Encoding:
        return self.engine.encode(text, add_special)

    def count(self, text: str) -> int:
        return len(self.encode(text, False))

    def with_truncation(self, truncation: Optional[TruncationParams]) -> "UnifiedTokenizer":
        return UnifiedTokenizer(self.kind, self.engine.with_truncation(truncation))

    def with_padding(self, padding: Optional[PaddingParams]) -> "UnifiedTokenizer":
        return UnifiedTokenizer(self.kind, self.engine.with_padding(padding))
