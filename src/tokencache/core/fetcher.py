# src/tokencache/core/fetcher.py
import asyncio
import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path

import httpx

from tokencache.config import DOWNLOAD_ATTEMPTS, DOWNLOAD_RETRY_DELAY
from tokencache.core.detector import check_json_file
from tokencache.errors import TokenizerError

logger = logging.getLogger(__name__)


class _AttemptFailed(Exception):
    pass


async def download_tokenizer_file(
    client: httpx.AsyncClient,
    url: str,
    api_key: str,
    to: Path,
) -> None:
    """GETs `url` and writes the full body to `to`."""
    logger.info("downloading tokenizer from %s", url)
    headers = {}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        response = await client.get(url, headers=headers)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise _AttemptFailed(f"failed to download tokenizer: failed to get response: {e}") from e

    try:
        await asyncio.to_thread(to.write_bytes, response.content)
    except OSError as e:
        raise _AttemptFailed(f"failed to download tokenizer: failed to write {to}: {e}") from e
    logger.info("saved tokenizer to %s", to)


def _relocate(tmp_path: Path, target_path: Path) -> None:
    # Copy next to the target first so the final rename stays on one filesystem
    staging = target_path.with_name(f".{uuid.uuid4().hex}.part")
    try:
        shutil.copyfile(tmp_path, staging)
        os.replace(staging, target_path)
    finally:
        staging.unlink(missing_ok=True)


async def _attempt(client: httpx.AsyncClient, url: str, api_key: str, target_path: Path) -> None:
    tmp_path = Path(tempfile.gettempdir()) / uuid.uuid4().hex
    try:
        await download_tokenizer_file(client, url, api_key, tmp_path)

        parent = target_path.parent
        if parent == target_path:
            raise _AttemptFailed("failed to download tokenizer: parent is not set")
        try:
            await asyncio.to_thread(parent.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise _AttemptFailed(f"failed to create parent dir {parent}: {e}") from e

        if not await asyncio.to_thread(check_json_file, tmp_path):
            raise _AttemptFailed(f"failed to download tokenizer: {url} is not a tokenizer")

        try:
            await asyncio.to_thread(_relocate, tmp_path, target_path)
        except OSError as e:
            raise _AttemptFailed(f"failed to copy tokenizer file to {target_path}: {e}") from e
        logger.info("moved tokenizer to %s", target_path)
    finally:
        tmp_path.unlink(missing_ok=True)


async def ensure_available(
    client: httpx.AsyncClient,
    url: str,
    api_key: str,
    target_path: Path,
    *,
    attempts: int = DOWNLOAD_ATTEMPTS,
    delay: float = DOWNLOAD_RETRY_DELAY,
) -> None:
    """
    Makes sure `target_path` holds a valid tokenizer.json downloaded from `url`.

    An already valid file short-circuits without any request. Otherwise the
    whole download, validate and relocate sequence is retried up to `attempts`
    times with a fixed `delay` between attempts. Partial downloads only ever
    live under temporary names.

    Raises:
        TokenizerError: with the last failure message once attempts run out.
    """
    target_path = Path(target_path)
    if target_path.exists() and await asyncio.to_thread(check_json_file, target_path):
        return

    last_error = ""
    for i in range(attempts):
        if i != 0:
            await asyncio.sleep(delay)
        try:
            await _attempt(client, url, api_key, target_path)
            return
        except _AttemptFailed as e:
            last_error = str(e)
            logger.error("%s", last_error)
    raise TokenizerError(last_error)
