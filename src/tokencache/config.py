# src/tokencache/config.py
import os
from dataclasses import dataclass
from pathlib import Path

HF_TOKENIZER_FILENAME = "tokenizer.json"
TIKTOKEN_MODEL_FILENAME = "tiktoken.model"
TIKTOKEN_CONFIG_FILENAME = "tokenizer_config.json"

TOKENIZERS_SUBDIR = "tokenizers"

DEFAULT_HF_TOKENIZER_TEMPLATE = "https://huggingface.co/$HF_MODEL/resolve/main/tokenizer.json"
HF_MODEL_PLACEHOLDER = "$HF_MODEL"

# Fetcher retry policy
DOWNLOAD_ATTEMPTS = 15
DOWNLOAD_RETRY_DELAY = 0.2  # seconds, no delay before the first attempt

# Per-request timeout; a hung request would otherwise hold the resolution lock
REQUEST_TIMEOUT = 30.0

DEFAULT_CACHE_DIR = "~/.cache/tokencache"

# Known tiktoken tables, in the order the filename heuristic checks them
TIKTOKEN_FILENAME_HINTS = [
    (("o200k", "gpt-4o"), "o200k_base"),
    (("p50k",), "p50k_base"),
    (("r50k", "gpt2"), "r50k_base"),
]
TIKTOKEN_DEFAULT_ENCODING = "cl100k_base"


@dataclass(frozen=True)
class Settings:
    """Runtime settings, overridable through TOKENCACHE_* environment variables."""
    cache_dir: Path
    hf_tokenizer_template: str = DEFAULT_HF_TOKENIZER_TEMPLATE
    request_timeout: float = REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        cache_dir = Path(env.get("TOKENCACHE_CACHE_DIR") or DEFAULT_CACHE_DIR).expanduser()
        template = env.get("TOKENCACHE_HF_TEMPLATE") or DEFAULT_HF_TOKENIZER_TEMPLATE
        raw_timeout = env.get("TOKENCACHE_REQUEST_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else REQUEST_TIMEOUT
        except ValueError:
            raise ValueError(f"TOKENCACHE_REQUEST_TIMEOUT must be a number, got {raw_timeout!r}") from None
        return cls(cache_dir=cache_dir, hf_tokenizer_template=template, request_timeout=timeout)
