# tests/test_tokenizer.py
import logging

import pytest

from tokencache.core.tiktoken_wrapper import TikTokenWrapper
from tokencache.core.unified import UnifiedTokenizer
from tokencache.errors import TokenizerError
from tokencache.utils.tokenizer import (
    count_text_tokens,
    count_text_tokens_with_fallback,
    estimate_tokens,
)


def test_estimate_tokens():
    assert estimate_tokens("") == 1
    assert estimate_tokens("hello") == 2
    assert estimate_tokens("a" * 35) == 11


def test_estimate_counts_bytes_not_characters():
    # 3 characters, 9 bytes
    assert estimate_tokens("日本語") == 1 + 18 // 7


def test_fallback_without_tokenizer():
    assert count_text_tokens_with_fallback(None, "hello") == 2
    assert count_text_tokens(None, "hello") == 2


def test_count_with_tokenizer(fake_encoding):
    tokenizer = UnifiedTokenizer.tiktoken(TikTokenWrapper.from_encoding(fake_encoding))
    assert count_text_tokens(tokenizer, "abcdef") == 6


def test_count_surfaces_encode_errors(failing_encoding):
    tokenizer = UnifiedTokenizer.tiktoken(TikTokenWrapper.from_encoding(failing_encoding))
    with pytest.raises(TokenizerError, match="Encoding error"):
        count_text_tokens(tokenizer, "hello")


def test_fallback_swallows_encode_errors(failing_encoding, caplog):
    tokenizer = UnifiedTokenizer.tiktoken(TikTokenWrapper.from_encoding(failing_encoding))
    with caplog.at_level(logging.ERROR):
        assert count_text_tokens_with_fallback(tokenizer, "hello") == 2
    assert "engine exploded" in caplog.text
