"""Word-window text chunking with overlapping windows.

Splits extracted text into :class:`~docflow.models.content.ContentChunk`
objects sized for embedding models (~1000 tokens each with 200-token
overlap by default).

Token accounting is approximate, not exact.  A "token" is taken to be
0.75 words, so a chunk budget of ``chunk_size`` tokens becomes a window of
``floor(chunk_size * 0.75)`` whitespace-separated words.  The window slides
forward by ``words_per_chunk - overlap`` words per step, and each chunk's
``tokens`` is simply the number of words in its window.  No real tokenizer
is involved, and chunk boundaries ignore sentences and paragraphs.

``start_index`` / ``end_index`` are offsets into the word sequence
(``text.split()``), so taking the first ``step`` words of every chunk plus
the tail of the last one reconstructs the original word sequence.

Two secondary granularities are provided for formats where word windows
are a poor fit:

* :meth:`TextChunker.chunk_lines` -- fixed line-count groups (spreadsheets,
  where row semantics matter more than token density).
* :meth:`TextChunker.single` -- one chunk wrapping the whole text (image
  placeholders).
"""

from __future__ import annotations

import math
import uuid

import structlog

from docflow.models.content import ChunkMetadata, ChunkType, ContentChunk
from docflow.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

# Approximate words per token.
WORDS_PER_TOKEN = 0.75

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200
DEFAULT_LINES_PER_CHUNK = 50


class TextChunker:
    """Splits text into overlapping word windows.

    Parameters
    ----------
    chunk_size:
        Target maximum token count per chunk (default 1000).
    overlap:
        Number of words shared by consecutive chunks (default 200).

    Raises
    ------
    ConfigurationError
        If the derived slide step would be non-positive, i.e.
        ``overlap >= floor(chunk_size * 0.75)``.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ConfigurationError(f"chunk_overlap must not be negative, got {overlap}")

        words_per_chunk = math.floor(chunk_size * WORDS_PER_TOKEN)
        if overlap >= words_per_chunk:
            raise ConfigurationError(
                f"chunk_overlap ({overlap}) must be smaller than the window of "
                f"{words_per_chunk} words derived from chunk_size={chunk_size}"
            )

        self._chunk_size = chunk_size
        self._overlap = overlap
        self._words_per_chunk = words_per_chunk
        self._step = words_per_chunk - overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    @property
    def words_per_chunk(self) -> int:
        return self._words_per_chunk

    @property
    def step(self) -> int:
        return self._step

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(
        self,
        text: str,
        source_id: str,
        chunk_type: ChunkType = ChunkType.TEXT,
        confidence: float = 1.0,
        language: str | None = None,
        track_pages: bool = False,
    ) -> list[ContentChunk]:
        """Split *text* into overlapping :class:`ContentChunk` windows.

        Parameters
        ----------
        text:
            The full text to chunk.
        source_id:
            Identifier of the source (usually the file name); used for
            logging only.
        chunk_type, confidence, language:
            Copied into every chunk's metadata.
        track_pages:
            When ``True``, ``--- Page N ---`` markers in *text* are used to
            set each chunk's ``metadata.page``.

        Returns
        -------
        list[ContentChunk]
            Chunks in non-decreasing ``start_index`` order.  Empty or
            whitespace-only input returns an empty list.
        """
        words = text.split()
        if not words:
            return []

        page_markers = _find_page_markers(words) if track_pages else []

        chunks: list[ContentChunk] = []
        for start in range(0, len(words), self._step):
            window = words[start : start + self._words_per_chunk]
            content = " ".join(window)
            if not content.strip():
                continue
            end = start + len(window)
            chunks.append(
                ContentChunk(
                    id=str(uuid.uuid4()),
                    content=content,
                    start_index=start,
                    end_index=end,
                    tokens=len(window),
                    metadata=ChunkMetadata(
                        type=chunk_type,
                        confidence=confidence,
                        page=_page_for(page_markers, start, end),
                        language=language,
                    ),
                )
            )

        logger.debug(
            "chunking_complete",
            source_id=source_id,
            num_chunks=len(chunks),
            num_words=len(words),
            words_per_chunk=self._words_per_chunk,
        )
        return chunks

    def chunk_lines(
        self,
        text: str,
        source_id: str,
        lines_per_chunk: int = DEFAULT_LINES_PER_CHUNK,
        chunk_type: ChunkType = ChunkType.TABLE,
        language: str | None = None,
    ) -> list[ContentChunk]:
        """Group the non-empty lines of *text* into fixed-size chunks.

        ``start_index`` / ``end_index`` are offsets into the sequence of
        non-empty lines; ``tokens`` is the word count of the group.
        """
        if lines_per_chunk <= 0:
            raise ConfigurationError(
                f"lines_per_chunk must be positive, got {lines_per_chunk}"
            )

        lines = [line for line in text.split("\n") if line.strip()]
        chunks: list[ContentChunk] = []
        for start in range(0, len(lines), lines_per_chunk):
            group = lines[start : start + lines_per_chunk]
            content = "\n".join(group)
            chunks.append(
                ContentChunk(
                    id=str(uuid.uuid4()),
                    content=content,
                    start_index=start,
                    end_index=start + len(group),
                    tokens=len(content.split()),
                    metadata=ChunkMetadata(type=chunk_type, language=language),
                )
            )

        logger.debug(
            "line_chunking_complete",
            source_id=source_id,
            num_chunks=len(chunks),
            num_lines=len(lines),
        )
        return chunks

    def single(
        self,
        text: str,
        source_id: str,
        chunk_type: ChunkType = ChunkType.TEXT,
        confidence: float = 1.0,
        language: str | None = None,
    ) -> list[ContentChunk]:
        """Wrap all of *text* in one chunk, or none if it is blank."""
        words = text.split()
        if not words:
            return []
        logger.debug("single_chunk", source_id=source_id, num_words=len(words))
        return [
            ContentChunk(
                id=str(uuid.uuid4()),
                content=text.strip(),
                start_index=0,
                end_index=len(words),
                tokens=len(words),
                metadata=ChunkMetadata(
                    type=chunk_type, confidence=confidence, language=language
                ),
            )
        ]


# ------------------------------------------------------------------
# Page markers
# ------------------------------------------------------------------


def page_marker(page_number: int) -> str:
    """Return the separator a multi-page extractor writes before page *page_number*."""
    return f"\n--- Page {page_number} ---\n"


def _find_page_markers(words: list[str]) -> list[tuple[int, int]]:
    """Return ``(word_index, page_number)`` for every ``--- Page N ---`` run in *words*."""
    markers: list[tuple[int, int]] = []
    for i in range(len(words) - 3):
        if (
            words[i] == "---"
            and words[i + 1] == "Page"
            and words[i + 2].isdigit()
            and words[i + 3] == "---"
        ):
            markers.append((i, int(words[i + 2])))
    return markers


def _page_for(markers: list[tuple[int, int]], start: int, end: int) -> int | None:
    """Page of the last marker at or before *start*, else the first one inside the window."""
    page: int | None = None
    for index, number in markers:
        if index <= start:
            page = number
        elif page is None and index < end:
            return number
        else:
            break
    return page if page and page >= 1 else None
