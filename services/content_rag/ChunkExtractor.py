"""Turns profile, file and URL text into ordered, bounded chunks.

Chunks are exact slices of the normalised source text. A chunk ends at the last
paragraph break inside the size budget, else at the last sentence end, else at the
last line break or space, and only as a last resort at a hard character cutoff.
Consecutive chunks share up to `overlap` characters, snapped to a word start.
"""

import re
import uuid

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Chunk, CompanyProfile, Document

# Fixed namespace for deterministic UUIDv5 chunk / point ids.
# Changing it would orphan every point already in the index.
_CHUNK_ID_NAMESPACE = uuid.UUID("3b8f1c52-7d0e-4a9b-9c61-2f4e8d5a7b13")

# a semantic break is only taken if it keeps the chunk at least this full
_MIN_FILL_RATIO = 0.3

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"[.!?][\"')\]]*(?=\s)")

PROFILE_SECTIONS = (
    ("goals", "Goals"),
    ("targets", "Target audiences"),
    ("products", "Products and services"),
    ("values", "Values"),
)


def make_chunk_id(source_id: str, sequence_index: int) -> str:
    """Build the deterministic point id of a chunk.

    The same source id and index always map to the same id, so re-indexing a source
    overwrites its points instead of duplicating them.
    """
    return str(uuid.uuid5(_CHUNK_ID_NAMESPACE, f"{source_id}:{sequence_index}"))


def normalize_text(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def flatten_profile(profile: CompanyProfile) -> str:
    """Render a profile as one labelled narrative block.

    Sections appear in a fixed order (description, goals, targets, products, values)
    and empty optional sections are left out.
    """
    blocks = [f"Company description:\n{profile.description.strip()}"]
    for field, label in PROFILE_SECTIONS:
        items = [str(item).strip() for item in getattr(profile, field) or [] if str(item).strip()]
        if items:
            blocks.append(f"{label}:\n" + "\n".join(f"- {item}" for item in items))
    return "\n\n".join(blocks)


class ChunkExtractor:
    def __init__(self, helper_config: HelperConfig, chunk_size: int | None = None, overlap: int | None = None) -> None:
        self.logging = helper_config.get_logger()
        self.chunk_size = int(chunk_size if chunk_size is not None else helper_config.get_number_val("CHUNK_SIZE", default=1000))
        self.overlap = int(overlap if overlap is not None else helper_config.get_number_val("CHUNK_OVERLAP", default=100))
        self._validate_sizes(self.chunk_size, self.overlap)

    @staticmethod
    def _validate_sizes(chunk_size: int, overlap: int) -> None:
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}.")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError(f"Chunk overlap must be in [0, {chunk_size}), got {overlap}.")

    ##########################################
    ################ CHUNKING ################
    ##########################################

    def chunk(
        self,
        source_text: str,
        source_id: str,
        metadata: dict | None = None,
        max_chunk_size: int | None = None,
        overlap: int | None = None,
    ) -> list[Chunk]:
        """Split text into ordered chunks of at most max_chunk_size characters.

        Args:
            source_text (str): Plain text to split.
            source_id (str): Id of the owning document or profile, used for chunk ids.
            metadata (dict | None): Citation fields copied into every chunk.
            max_chunk_size (int | None): Overrides the configured chunk size.
            overlap (int | None): Overrides the configured overlap.

        Returns:
            list[Chunk]: Chunks in source order. Empty or whitespace-only input yields [].
        """
        size = self.chunk_size if max_chunk_size is None else int(max_chunk_size)
        overlap = self.overlap if overlap is None else int(overlap)
        self._validate_sizes(size, overlap)

        text = normalize_text(source_text or "")
        if not text:
            return []

        chunks: list[Chunk] = []
        previous_end = 0
        for index, (start, end) in enumerate(self._split_spans(text, size, overlap)):
            chunks.append(
                Chunk(
                    id=make_chunk_id(source_id, index),
                    source_id=source_id,
                    text=text[start:end],
                    sequence_index=index,
                    metadata={
                        **(metadata or {}),
                        "start": start,
                        "end": end,
                        "overlap": max(0, previous_end - start) if index else 0,
                    },
                )
            )
            previous_end = end

        self.logging.debug("Chunked source %s into %d chunks (size=%d, overlap=%d).", source_id, len(chunks), size, overlap)
        return chunks

    def chunk_profile(self, profile: CompanyProfile) -> list[Chunk]:
        metadata = {"source_type": "profile", "title": "Company profile"}
        return self.chunk(flatten_profile(profile), source_id=profile.id, metadata=metadata)

    def chunk_document(self, document: Document) -> list[Chunk]:
        metadata = {
            "source_type": document.source_type,
            "title": document.get_display_name(),
            "file_name": document.file_name,
            "url": document.url,
        }
        return self.chunk(document.extracted_text, source_id=document.id, metadata=metadata)

    ##########################################
    ################ SPANS ###################
    ##########################################

    def _split_spans(self, text: str, size: int, overlap: int) -> list[tuple[int, int]]:
        spans: list[tuple[int, int]] = []
        length = len(text)
        start = 0
        while start < length:
            while start < length and text[start].isspace():
                start += 1
            if start >= length:
                break

            hard_end = min(start + size, length)
            end = length if hard_end == length else self._find_break(text, start, hard_end)
            while end > start + 1 and text[end - 1].isspace():
                end -= 1
            spans.append((start, end))
            if end >= length:
                break

            if overlap == 0 or end - overlap <= start:
                start = end
            else:
                start = self._snap_to_word(text, end - overlap, end)
        return spans

    def _find_break(self, text: str, start: int, hard_end: int) -> int:
        """Return the end index of the best semantic break inside text[start:hard_end]."""
        window = text[start:hard_end]
        min_end = int(len(window) * _MIN_FILL_RATIO)

        for pattern in (_PARAGRAPH_BREAK, _SENTENCE_END):
            candidates = [m.end() if pattern is _SENTENCE_END else m.start() for m in pattern.finditer(window)]
            candidates = [c for c in candidates if c > min_end]
            if candidates:
                return start + candidates[-1]

        for separator in ("\n", " "):
            position = window.rfind(separator)
            if position > min_end:
                return start + position

        return hard_end

    @staticmethod
    def _snap_to_word(text: str, position: int, limit: int) -> int:
        """Move position forward to the start of the next word, staying before limit."""
        if position > 0 and not text[position - 1].isspace():
            while position < limit and not text[position].isspace():
                position += 1
        while position < limit and text[position].isspace():
            position += 1
        return position if position < limit else limit
