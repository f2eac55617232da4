# src/tokencache/utils/tokenizer.py
import logging
from typing import Optional

from tokencache.core.unified import UnifiedTokenizer
from tokencache.errors import TokenizerError

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Estimates token count as bytes / 3.5 (about 3 for code, 4 for prose)."""
    return 1 + len(text.encode("utf-8")) * 2 // 7


def count_text_tokens(tokenizer: Optional[UnifiedTokenizer], text: str) -> int:
    """Counts tokens with `tokenizer`, or estimates them when there is none."""
    if tokenizer is None:
        return estimate_tokens(text)
    try:
        return len(tokenizer.encode(text, False))
    except TokenizerError as e:
        raise TokenizerError(f"Encoding error: {e}") from e


def count_text_tokens_with_fallback(tokenizer: Optional[UnifiedTokenizer], text: str) -> int:
    try:
        return count_text_tokens(tokenizer, text)
    except TokenizerError as e:
        logger.error("%s", e)
        return estimate_tokens(text)
