# tests/test_unified.py
import pytest

from tokencache.core.detector import TokenizerFormat
from tokencache.core.hf_wrapper import HuggingFaceWrapper
from tokencache.core.tiktoken_wrapper import TikTokenWrapper
from tokencache.core.unified import UnifiedTokenizer
from tokencache.errors import TokenizerError
from tokencache.models import PaddingParams, TruncationParams


@pytest.fixture
def hf_unified(hf_dir):
    return UnifiedTokenizer.huggingface(HuggingFaceWrapper.from_file(hf_dir / "tokenizer.json"))


def test_huggingface_encode(hf_unified):
    enc = hf_unified.encode("hello, world!")
    assert enc.ids == [2, 4, 3, 5]
    assert enc.tokens == ["hello", ",", "world", "!"]
    assert enc.offsets == [(0, 5), (5, 6), (7, 12), (12, 13)]
    assert enc.attention_mask == [1, 1, 1, 1]
    assert hf_unified.count("hello world") == 2


def test_from_file_reports_bad_json(tmp_path):
    bad = tmp_path / "tokenizer.json"
    bad.write_text("{}", encoding="utf-8")
    with pytest.raises(TokenizerError, match="failed to load HuggingFace tokenizer"):
        HuggingFaceWrapper.from_file(bad)


def test_huggingface_truncation_is_copy_on_write(hf_unified):
    shared = hf_unified
    truncated = shared.with_truncation(TruncationParams(max_length=2))

    assert truncated.encode("hello world foo bar").ids == [2, 3]
    # The instance other callers hold is unchanged
    assert shared.encode("hello world foo bar").ids == [2, 3, 6, 7]
    assert shared.engine.truncation is None
    assert truncated.engine is not shared.engine


def test_huggingface_padding(hf_unified):
    padded = hf_unified.with_padding(PaddingParams(pad_id=1, length=4))
    enc = padded.encode("hello world")
    assert enc.ids == [2, 3, 1, 1]
    assert enc.attention_mask == [1, 1, 0, 0]
    assert hf_unified.encode("hello world").ids == [2, 3]


def test_clearing_truncation(hf_unified):
    truncated = hf_unified.with_truncation(TruncationParams(max_length=1))
    restored = truncated.with_truncation(None)
    assert restored.count("hello world foo") == 3


def test_tiktoken_variant_is_copy_on_write(fake_encoding):
    shared = UnifiedTokenizer.tiktoken(TikTokenWrapper.from_encoding(fake_encoding))
    truncated = shared.with_truncation(TruncationParams(max_length=1))

    assert truncated.kind is TokenizerFormat.TIKTOKEN
    assert truncated.count("abcd") == 1
    assert shared.count("abcd") == 4


def test_kind_must_match_engine(fake_encoding):
    with pytest.raises(TypeError):
        UnifiedTokenizer(TokenizerFormat.HUGGINGFACE, TikTokenWrapper.from_encoding(fake_encoding))
    with pytest.raises(ValueError):
        UnifiedTokenizer(TokenizerFormat.UNRECOGNIZED, TikTokenWrapper.from_encoding(fake_encoding))


def test_unified_is_immutable(hf_unified):
    with pytest.raises(AttributeError):
        hf_unified.kind = TokenizerFormat.TIKTOKEN
