# src/tokencache/models.py
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tokencache.errors import TokenizerError


@dataclass(frozen=True)
class ModelRecord:
    """Immutable model record as supplied by the model registry."""
    id: str
    tokenizer: str
    tokenizer_api_key: str = ""


class SourceKind(Enum):
    EMPTY = "empty"
    FAKE = "fake"
    HF = "hf"
    URL = "url"
    FILE = "file"


@dataclass(frozen=True)
class TokenizerSource:
    """Parsed form of a model record's tokenizer descriptor."""
    kind: SourceKind
    value: str = ""

    @classmethod
    def parse(cls, descriptor: str) -> "TokenizerSource":
        if not descriptor:
            return cls(SourceKind.EMPTY)
        if descriptor.startswith("fake"):
            return cls(SourceKind.FAKE, descriptor)
        if descriptor.startswith("hf://"):
            return cls(SourceKind.HF, descriptor[len("hf://"):])
        if descriptor.startswith("http://") or descriptor.startswith("https://"):
            return cls(SourceKind.URL, descriptor)
        return cls(SourceKind.FILE, descriptor)


@dataclass(frozen=True)
class TokenizerConfig:
    """Side-car tokenizer_config.json shipped next to a tiktoken table."""
    added_tokens_decoder: Dict[str, Any] = field(default_factory=dict)
    model_max_length: Optional[int] = None
    pat_str: Optional[str] = None

    @classmethod
    def from_file(cls, path: Path) -> "TokenizerConfig":
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise TokenizerError(f"Failed to read tokenizer_config.json: {e}") from e
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TokenizerError(f"Failed to parse tokenizer_config.json: {e}") from e
        if not isinstance(data, dict):
            raise TokenizerError(
                f"Failed to parse tokenizer_config.json: expected an object, got {type(data).__name__}"
            )

        added = data.get("added_tokens_decoder") or {}
        max_length = data.get("model_max_length")
        pat_str = data.get("pat_str")
        # HF configs store "unbounded" as a huge float
        if max_length is not None and not isinstance(max_length, int):
            max_length = None
        if pat_str is not None and not isinstance(pat_str, str):
            pat_str = None
        return cls(added_tokens_decoder=dict(added), model_max_length=max_length, pat_str=pat_str)


@dataclass(frozen=True)
class TruncationParams:
    max_length: int = 512
    stride: int = 0
    strategy: str = "longest_first"
    direction: str = "right"


@dataclass(frozen=True)
class PaddingParams:
    direction: str = "right"
    pad_id: int = 0
    pad_type_id: int = 0
    pad_token: str = "[PAD]"
    length: Optional[int] = None
    pad_to_multiple_of: Optional[int] = None


@dataclass(frozen=True)
class Encoding:
    """Tokenized text, shared by both tokenizer formats."""
    ids: List[int]
    type_ids: List[int]
    tokens: List[str]
    word_ids: List[Optional[int]]
    offsets: List[Tuple[int, int]]
    special_tokens_mask: List[int]
    attention_mask: List[int]

    def __len__(self) -> int:
        return len(self.ids)

    @classmethod
    def from_hf(cls, encoding) -> "Encoding":
        return cls(
            ids=list(encoding.ids),
            type_ids=list(encoding.type_ids),
            tokens=list(encoding.tokens),
            word_ids=list(encoding.word_ids),
            offsets=[tuple(o) for o in encoding.offsets],
            special_tokens_mask=list(encoding.special_tokens_mask),
            attention_mask=list(encoding.attention_mask),
        )
