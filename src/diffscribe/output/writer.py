"""Write rendered change sets to Markdown files."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from diffscribe.git.models import CommitMeta

DOCUMENT_SEPARATOR = "\n\n---\n\n"


@dataclass(frozen=True)
class RenderedDocument:
    seq: int  # 1-based position of the change set in the export request
    meta: CommitMeta
    text: str


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def document_filename(doc: RenderedDocument, stamp: int) -> str:
    if doc.meta.is_staged:
        return f"diff-staged-{stamp}.md"
    return f"diff-{doc.seq:04d}-{doc.meta.short_hash}.md"


def combined_filename(stamp: int) -> str:
    return f"commits-{stamp}.md"


def join_documents(docs: Sequence[RenderedDocument]) -> str:
    return DOCUMENT_SEPARATOR.join(doc.text for doc in docs)


def write_documents(
    docs: Sequence[RenderedDocument],
    output_dir: Path,
    *,
    single_file: bool = True,
    stamp: Optional[int] = None,
) -> List[Path]:
    """Write *docs* under *output_dir* and return the paths written.

    With *single_file* and more than one document, everything goes into one
    ``commits-<timestamp>.md`` joined by horizontal rules.
    """
    if not docs:
        return []
    stamp = stamp if stamp is not None else timestamp_ms()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if single_file and len(docs) > 1:
        target = output_dir / combined_filename(stamp)
        target.write_text(join_documents(docs), encoding="utf-8")
        logger.info(f"Wrote {len(docs)} change sets to {target}")
        return [target]

    written: List[Path] = []
    for doc in docs:
        target = output_dir / document_filename(doc, stamp)
        target.write_text(doc.text, encoding="utf-8")
        logger.info(f"Wrote {target}")
        written.append(target)
    return written
