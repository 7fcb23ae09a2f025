"""Fetch blobs and reconstruct files, several at a time, in diff order.

Blob fetches are the only blocking calls, so files are handed to a thread
pool; ``pool.map`` returns results in submission order whatever order the
fetches finish in.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from loguru import logger

from diffscribe.git.adapter import MAX_BLOB_BYTES, BlobFetcher, BlobRef, blob_refs
from diffscribe.git.models import CommitMeta, DiffFile
from diffscribe.reconstruct.engine import apply_budget, hunk_lines, reconstruct
from diffscribe.reconstruct.filetypes import omits_content
from diffscribe.reconstruct.models import Reconstruction, Strategy
from diffscribe.render.options import RenderOptions


def _fetch(fetcher: Optional[BlobFetcher], ref: Optional[BlobRef], limit: int) -> Optional[str]:
    if fetcher is None or ref is None:
        return None
    return fetcher.fetch_blob(ref, limit)


def reconstruct_file(
    file: DiffFile,
    meta: CommitMeta,
    options: RenderOptions,
    fetcher: Optional[BlobFetcher] = None,
) -> Reconstruction:
    """Fetch what *file* needs and reconstruct it.

    Never raises: if fetching or reconstruction fails, the file falls back to
    its own hunk lines so the remaining files still render.
    """
    if omits_content(file):
        return Reconstruction(strategy=Strategy.BINARY)

    limit = max(options.max_file_bytes, MAX_BLOB_BYTES)
    try:
        before_ref, after_ref = blob_refs(file, meta)
        before = _fetch(fetcher, before_ref, limit)
        after = _fetch(fetcher, after_ref, limit)
        return reconstruct(
            file,
            before,
            after,
            options.max_file_bytes,
            detect_binary=options.detect_binary,
        )
    except Exception as exc:
        logger.warning(f"Could not reconstruct {file.path} ({exc}); using hunk body")
        return apply_budget(hunk_lines(file.hunks), options.max_file_bytes, Strategy.HUNKS)


def reconstruct_files(
    files: Sequence[DiffFile],
    meta: CommitMeta,
    options: RenderOptions,
    fetcher: Optional[BlobFetcher] = None,
) -> List[Reconstruction]:
    """Reconstruct *files* in parallel; the result list matches their order."""
    worker_count = min(options.max_workers, len(files))
    if worker_count <= 1:
        return [reconstruct_file(f, meta, options, fetcher) for f in files]
    with ThreadPoolExecutor(max_workers=worker_count) as pool:
        return list(pool.map(lambda f: reconstruct_file(f, meta, options, fetcher), files))
