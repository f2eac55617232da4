# src/tokencache/core/resolver.py
import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx

from tokencache.config import (
    DEFAULT_HF_TOKENIZER_TEMPLATE,
    HF_MODEL_PLACEHOLDER,
    HF_TOKENIZER_FILENAME,
    TOKENIZERS_SUBDIR,
    Settings,
)
from tokencache.core.detector import TokenizerFormat, classify, find_hf_json
from tokencache.core.fetcher import ensure_available
from tokencache.core.hf_wrapper import HuggingFaceWrapper
from tokencache.core.tiktoken_wrapper import TikTokenWrapper
from tokencache.core.unified import UnifiedTokenizer
from tokencache.errors import TokenizerError
from tokencache.models import ModelRecord, SourceKind, TokenizerSource

logger = logging.getLogger(__name__)


class TokenizerContext:
    """
    Process-wide state for tokenizer resolution.

    `tokenizer_map` maps a model id to its tokenizer, or to None when the
    model deliberately has none. A missing key means "not resolved yet".
    Writes to the map only happen while `tokenizer_download_lock` is held.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache_dir: Union[str, Path],
        hf_tokenizer_template: str = DEFAULT_HF_TOKENIZER_TEMPLATE,
    ):
        self.http_client = http_client
        self.cache_dir = Path(cache_dir)
        self.hf_tokenizer_template = hf_tokenizer_template
        self.tokenizer_map: Dict[str, Optional[UnifiedTokenizer]] = {}
        self.tokenizer_download_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenizerContext":
        client = httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True)
        return cls(client, settings.cache_dir, settings.hf_tokenizer_template)

    @classmethod
    def from_env(cls) -> "TokenizerContext":
        return cls.from_settings(Settings.from_env())

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> "TokenizerContext":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def strip_model_from_finetune(model_id: str) -> str:
    """'base:my-finetune' -> 'base'"""
    return model_id.split(":", 1)[0]


def sanitize_model_id(model_id: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in model_id)


def tokenizer_cache_path(cache_dir: Path, model_id: str) -> Path:
    return Path(cache_dir) / TOKENIZERS_SUBDIR / sanitize_model_id(model_id) / HF_TOKENIZER_FILENAME


def canonical_path(path: Union[str, Path]) -> Path:
    return Path(path).expanduser().resolve()


def _file_url_to_path(url: str) -> Path:
    parsed = urlparse(url)
    if parsed.netloc not in ("", "localhost"):
        raise TokenizerError(f"Invalid path URL {url}: unexpected host {parsed.netloc!r}")
    if not parsed.path:
        raise TokenizerError(f"Invalid path URL {url}: empty path")
    return Path(url2pathname(parsed.path))


def load_tokenizer(path: Path) -> UnifiedTokenizer:
    """Detects the tokenizer format at `path` and wraps the matching adapter."""
    path = Path(path)
    tokenizer_format = classify(path)

    if tokenizer_format is TokenizerFormat.HUGGINGFACE:
        hf_json = find_hf_json(path)
        logger.info("Loading HuggingFace tokenizer from %s", hf_json)
        return UnifiedTokenizer.huggingface(HuggingFaceWrapper.from_file(hf_json))

    if tokenizer_format is TokenizerFormat.TIKTOKEN:
        logger.info("Loading TikToken tokenizer from %s", path)
        if path.is_dir():
            wrapper = TikTokenWrapper.from_directory(path)
        else:
            wrapper = TikTokenWrapper.from_model_file(path)
        return UnifiedTokenizer.tiktoken(wrapper)

    raise TokenizerError(f"No valid tokenizer format found at {path}")


async def cached_tokenizer(context: TokenizerContext, model_rec: ModelRecord) -> Optional[UnifiedTokenizer]:
    """
    Returns the tokenizer for `model_rec`, resolving it on first use.

    Resolutions are serialized process-wide by the context lock, so a second
    caller for the same model finds the first caller's result in the map and
    does no work. None means the model has no tokenizer by design. Failures
    leave the map untouched, so the next call starts over.

    Raises:
        TokenizerError: on an empty descriptor, a bad file URL, exhausted
            downloads or an unrecognized tokenizer format.
    """
    model_id = strip_model_from_finetune(model_rec.id)

    async with context.tokenizer_download_lock:
        if model_id in context.tokenizer_map:
            return context.tokenizer_map[model_id]

        source = TokenizerSource.parse(model_rec.tokenizer)
        url = ""
        if source.kind is SourceKind.EMPTY:
            raise TokenizerError(f"failed to load tokenizer: empty tokenizer for {model_id}")
        elif source.kind is SourceKind.FAKE:
            context.tokenizer_map[model_id] = None
            return None
        elif source.kind is SourceKind.HF:
            if not context.hf_tokenizer_template:
                raise TokenizerError(f"failed to load tokenizer: no HuggingFace tokenizer template for {model_id}")
            url = context.hf_tokenizer_template.replace(HF_MODEL_PLACEHOLDER, source.value)
        elif source.kind is SourceKind.URL:
            url = source.value
        elif source.kind is SourceKind.FILE:
            if source.value.startswith("file://"):
                tok_path = canonical_path(_file_url_to_path(source.value))
            else:
                tok_path = canonical_path(source.value)
        else:
            raise AssertionError(f"unreachable source kind: {source.kind}")

        if source.kind in (SourceKind.HF, SourceKind.URL):
            tok_path = tokenizer_cache_path(context.cache_dir, model_id)
            await ensure_available(context.http_client, url, model_rec.tokenizer_api_key, tok_path)

        logger.info('loading tokenizer "%s"', tok_path)
        tokenizer = await asyncio.to_thread(load_tokenizer, tok_path)

        context.tokenizer_map[model_id] = tokenizer
        return tokenizer
