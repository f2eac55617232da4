# tests/conftest.py
import pytest
from tokenizers import Tokenizer
from tokenizers.models import WordLevel
from tokenizers.pre_tokenizers import Whitespace

from tokencache.core import fetcher

VOCAB = {"[UNK]": 0, "[PAD]": 1, "hello": 2, "world": 3, ",": 4, "!": 5, "foo": 6, "bar": 7}


def build_hf_tokenizer() -> Tokenizer:
    tokenizer = Tokenizer(WordLevel(VOCAB, unk_token="[UNK]"))
    tokenizer.pre_tokenizer = Whitespace()
    return tokenizer


@pytest.fixture
def hf_tokenizer_bytes():
    """Serialized tokenizer.json content, as a server would return it."""
    return build_hf_tokenizer().to_str().encode("utf-8")


@pytest.fixture
def hf_dir(tmp_path):
    """A directory holding a valid tokenizer.json."""
    d = tmp_path / "hf_model"
    d.mkdir()
    build_hf_tokenizer().save(str(d / "tokenizer.json"))
    return d


class FakeEncoding:
    """Stands in for tiktoken.Encoding: one id per character, id 7 is half a UTF-8 sequence."""
    name = "fake_base"

    def __init__(self, fail=False):
        self.fail = fail

    def encode_ordinary(self, text):
        if self.fail:
            raise ValueError("engine exploded")
        return [ord(c) % 8 for c in text]

    def decode_single_token_bytes(self, token_id):
        if token_id == 7:
            return b"\xe2\x82"
        return chr(ord("a") + token_id).encode("utf-8")


@pytest.fixture
def fake_encoding():
    return FakeEncoding()


@pytest.fixture
def failing_encoding():
    return FakeEncoding(fail=True)


@pytest.fixture
def sleeps(monkeypatch):
    """Records the fetcher's retry delays instead of sleeping."""
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(fetcher.asyncio, "sleep", fake_sleep)
    return delays
