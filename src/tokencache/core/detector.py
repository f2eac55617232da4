# src/tokencache/core/detector.py
from enum import Enum
from pathlib import Path

from tokenizers import Tokenizer

from tokencache.config import HF_TOKENIZER_FILENAME, TIKTOKEN_MODEL_FILENAME


class TokenizerFormat(Enum):
    HUGGINGFACE = "huggingface"
    TIKTOKEN = "tiktoken"
    UNRECOGNIZED = "unrecognized"


def check_json_file(path: Path) -> bool:
    """Returns True if the HuggingFace engine can fully load the file."""
    try:
        Tokenizer.from_file(str(path))
        return True
    except Exception:
        # The engine raises a bare Exception for any parse failure
        return False


def find_hf_json(path: Path) -> Path:
    """Where a tokenizer.json for `path` would live."""
    if path.is_dir():
        return path / HF_TOKENIZER_FILENAME
    if path.suffix == ".json":
        return path
    return path.parent / HF_TOKENIZER_FILENAME


def is_tiktoken_format(path: Path) -> bool:
    """
    A directory qualifies if it holds tiktoken.model (the side-car config is optional).
    A file qualifies by its .model extension alone.
    """
    if path.is_dir():
        return (path / TIKTOKEN_MODEL_FILENAME).exists()
    if path.is_file():
        return path.suffix == ".model"
    return False


def classify(path: Path) -> TokenizerFormat:
    """Classifies a path, preferring a valid tokenizer.json over a tiktoken table."""
    path = Path(path)
    hf_json = find_hf_json(path)
    if hf_json.is_file() and check_json_file(hf_json):
        return TokenizerFormat.HUGGINGFACE
    if is_tiktoken_format(path):
        return TokenizerFormat.TIKTOKEN
    return TokenizerFormat.UNRECOGNIZED
