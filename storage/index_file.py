"""
JSON index files.

The offline builders write one file per corpus:
    {"model": ..., "dims": ..., "createdAt": ..., "chunks": [{id, text, embedding, metadata?}]}
"""

import logging
from pathlib import Path
from typing import Union

from shared.schemas import CorpusIndex

logger = logging.getLogger(__name__)


def read_corpus_index(path: Union[str, Path]) -> CorpusIndex:
    """
    Read and validate an index file.

    Raises:
        FileNotFoundError: the file does not exist
        pydantic.ValidationError: the document does not match the corpus shape
    """
    path = Path(path)
    index = CorpusIndex.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info(f"Read {len(index.chunks)} chunks from {path}")
    return index


def write_corpus_index(index: CorpusIndex, path: Union[str, Path]) -> None:
    """Write an index file in the builders' JSON shape."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        index.model_dump_json(by_alias=True, exclude_none=True), encoding="utf-8"
    )
    logger.info(f"Wrote {len(index.chunks)} chunks to {path}")
