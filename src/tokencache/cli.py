# src/tokencache/cli.py
import sys
import argparse
import asyncio
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from tokencache.config import Settings
from tokencache.core.resolver import TokenizerContext, cached_tokenizer
from tokencache.core.unified import UnifiedTokenizer
from tokencache.errors import TokenizerError
from tokencache.models import ModelRecord
from tokencache.utils.tokenizer import count_text_tokens, count_text_tokens_with_fallback


def create_arg_parser():
    parser = argparse.ArgumentParser(
        description="Count tokens in files using a model's tokenizer, downloading and caching it on first use."
    )
    parser.add_argument("files", type=str, nargs="+", help="Text files to count")
    parser.add_argument(
        "-t", "--tokenizer",
        type=str,
        required=True,
        help="Tokenizer source: hf://<model>, http(s)://<url>, file://<path>, a local path, or 'fake'",
    )
    parser.add_argument("-m", "--model-id", type=str, default=None, help="Model id used as the cache key (default: derived from --tokenizer)")
    parser.add_argument("--api-key", type=str, default=os.environ.get("TOKENCACHE_API_KEY", ""), help="Bearer token for the download")
    parser.add_argument("--cache-dir", type=str, default=None, help="Cache directory (default: $TOKENCACHE_CACHE_DIR or ~/.cache/tokencache)")
    parser.add_argument("--fallback", action="store_true", help="Estimate counts instead of failing when encoding fails")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log downloads and tokenizer loading")
    return parser


def get_default_model_id(tokenizer: str) -> str:
    """Derives a cache key from the tokenizer descriptor."""
    if tokenizer.startswith("hf://"):
        return tokenizer[len("hf://"):]
    if tokenizer.startswith("http://") or tokenizer.startswith("https://"):
        # The last segment is usually just tokenizer.json, so key on host and path
        parsed = urlparse(tokenizer)
        # ":" would read as a fine-tune suffix, so ports are rewritten
        return f"{parsed.netloc.replace(':', '_')}{parsed.path}".rstrip("/") or "model"
    name = tokenizer.rstrip("/").rsplit("/", 1)[-1]
    return name or "model"


async def resolve_tokenizer(settings: Settings, model_rec: ModelRecord) -> Optional[UnifiedTokenizer]:
    async with TokenizerContext.from_settings(settings) as context:
        return await cached_tokenizer(context, model_rec)


def count_files(tokenizer: Optional[UnifiedTokenizer], paths: List[Path], fallback: bool) -> List[tuple]:
    counter = count_text_tokens_with_fallback if fallback else count_text_tokens
    rows = []
    for path in paths:
        content = path.read_text(encoding="utf-8")
        rows.append((path, counter(tokenizer, content)))
    return rows


def main():
    try:
        parser = create_arg_parser()
        args = parser.parse_args()

        logging.basicConfig(
            level=logging.INFO if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        settings = Settings.from_env()
        if args.cache_dir:
            settings = replace(settings, cache_dir=Path(args.cache_dir).expanduser())

        paths = [Path(p) for p in args.files]
        missing = [p for p in paths if not p.is_file()]
        if missing:
            print(f"Error: Not a file: '{missing[0]}'", file=sys.stderr)
            sys.exit(1)

        model_rec = ModelRecord(
            id=args.model_id or get_default_model_id(args.tokenizer),
            tokenizer=args.tokenizer,
            tokenizer_api_key=args.api_key,
        )

        print(f"--- tokencache ---")
        print(f"Model:     {model_rec.id}")
        print(f"Tokenizer: {model_rec.tokenizer}")

        tokenizer = asyncio.run(resolve_tokenizer(settings, model_rec))
        if tokenizer is None:
            print("Mode:      estimate (model has no tokenizer)")
        else:
            print(f"Mode:      {tokenizer.kind.value}")

        rows = count_files(tokenizer, paths, args.fallback)
        rows.sort(key=lambda r: r[1], reverse=True)

        print(f"\n{'Tokens':<10} | {'File Path'}")
        print("-" * 60)
        for path, count in rows:
            print(f"{count:<10} | {path}")
        print("-" * 60)
        print(f"Total tokens: {sum(count for _, count in rows)}")

    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)

    except TokenizerError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        sys.exit(1)

if __name__ == "__main__":
    main()
