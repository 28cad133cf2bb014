# vecgrep/tools/download.py
"""
Model download helper.

Streams a (usually gzip-compressed) model file over HTTP and stores the
decompressed result. Gzip is detected from the payload's magic bytes.

Env vars:
  - VECGREP_DOWNLOAD_TIMEOUT (default 60)
"""

from __future__ import annotations

import gzip
import os
import shutil
from pathlib import Path
from typing import Callable, Optional, Union

import requests

from ..errors import ModelIOError

DEFAULT_MODEL_URL = (
    "https://github.com/eyaler/word2vec-slim/raw/master/GoogleNews-vectors-negative300-SLIM.bin.gz"
)
DEFAULT_MODEL_PATH = Path("models") / "googlenews-slim" / "GoogleNews-vectors-negative300-SLIM.bin"

_GZIP_MAGIC = b"\x1f\x8b"
_CHUNK = 1 << 20


def download_model(
    url: str = DEFAULT_MODEL_URL,
    dest: Union[str, Path] = DEFAULT_MODEL_PATH,
    on_start: Optional[Callable[[Optional[int]], None]] = None,
    on_chunk: Optional[Callable[[int], None]] = None,
) -> Path:
    """
    Download a model to `dest`, decompressing gzip payloads.

    Args:
        url: HTTP(S) URL of the model.
        dest: Final (decompressed) file path; parent dirs are created.
        on_start: Called once with the Content-Length (or None).
        on_chunk: Called with the size of each downloaded chunk.

    Returns:
        The destination path.

    Raises:
        ModelIOError: On HTTP/network errors or local write failures.
    """
    target = Path(dest).expanduser()
    partial = target.with_name(target.name + ".part")
    timeout = int(os.getenv("VECGREP_DOWNLOAD_TIMEOUT", "60"))

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with requests.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            length = r.headers.get("content-length")
            if on_start is not None:
                on_start(int(length) if length and length.isdigit() else None)
            with partial.open("wb") as fh:
                for chunk in r.iter_content(chunk_size=_CHUNK):
                    if not chunk:
                        continue
                    fh.write(chunk)
                    if on_chunk is not None:
                        on_chunk(len(chunk))

        with partial.open("rb") as fh:
            compressed = fh.read(2) == _GZIP_MAGIC
        if compressed:
            with gzip.open(partial, "rb") as src, target.open("wb") as dst:
                shutil.copyfileobj(src, dst, _CHUNK)
            partial.unlink()
        else:
            partial.replace(target)
    except requests.RequestException as e:
        raise ModelIOError(f"download failed for {url}: {e}") from e
    except OSError as e:
        raise ModelIOError(f"cannot write {target}: {e}") from e
    finally:
        if partial.exists():
            partial.unlink()

    return target
