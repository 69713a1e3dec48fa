# bookstream/services/book_parser.py
# Best-effort metadata extraction for uploaded books.
#
#   title / author  -- "<title>-<author>.pdf" style filenames, then the first
#                      lines of PDF text when they look plausible
#   genre / summary -- PlaceholderClassifier: random picks from fixed pools.
#                      A real classifier implements MetadataClassifier and is
#                      passed to MetadataExtractor; the pipeline does not change.
#   cover image     -- not extracted yet, always None
#
# MetadataExtractor.extract() never raises. Any failure degrades to a
# filename-only result with the error recorded in the metadata bag.

import logging
import os
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pypdf

from bookstream.services.file_storage import is_pdf

logger = logging.getLogger("bookstream.book_parser")

DEFAULT_TITLE = "Untitled Book"
DEFAULT_AUTHOR = "Unknown Author"
FALLBACK_GENRE = "Fiction"
FALLBACK_SUMMARY_SHORT = "A book waiting to be discovered."
FALLBACK_SUMMARY_LONG = "This book has been uploaded but metadata extraction is pending."

# Characters of leading PDF text inspected for a title / author line
TEXT_SAMPLE_CHARS = 500

GENRES = [
    "Fiction", "Non-Fiction", "Mystery", "Romance", "Science Fiction",
    "Fantasy", "Thriller", "Biography", "History", "Self-Help",
    "Business", "Technology", "Philosophy", "Poetry", "Drama",
]

SHORT_SUMMARIES = [
    "A captivating tale that explores the depths of human experience.",
    "An engaging narrative that takes readers on an unforgettable journey.",
    "A thought-provoking work that challenges conventional wisdom.",
    "A beautifully written story that captures the essence of its time.",
    "An inspiring account of courage and determination.",
]

LONG_SUMMARIES = [
    "This remarkable work delves deep into the complexities of its subject matter, "
    "offering readers a comprehensive exploration of themes that resonate across "
    "generations. Through masterful storytelling and insightful analysis, the author "
    "presents a narrative that is both entertaining and enlightening.",
    "In this compelling volume, readers are invited to explore a world rich with "
    "detail and meaning. The author skillfully weaves together multiple narrative "
    "threads, creating a tapestry of human experience that is both personal and universal.",
    "This book represents a significant contribution to its field, combining rigorous "
    "research with accessible prose. The author presents complex ideas in a manner that "
    "is both engaging and educational, making this work valuable for both experts and "
    "general readers.",
]


@dataclass
class ExtractedMetadata:
    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    genre: str = FALLBACK_GENRE
    summary_short: str = FALLBACK_SUMMARY_SHORT
    summary_long: str = FALLBACK_SUMMARY_LONG
    cover_image_url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


# ── Classification ────────────────────────────────────────────────────────────

class MetadataClassifier(ABC):
    """Assigns a genre and summaries to a book."""

    @abstractmethod
    def classify_genre(self, title: str, author: str) -> str:
        ...

    @abstractmethod
    def summarize(self, title: str, author: str) -> Tuple[str, str]:
        """Returns (short, long)."""
        ...


class PlaceholderClassifier(MetadataClassifier):
    """
    Mock classifier: uniform random picks from GENRES and the summary pools.
    Pass a seeded random.Random for deterministic output.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def classify_genre(self, title: str, author: str) -> str:
        return self.rng.choice(GENRES)

    def summarize(self, title: str, author: str) -> Tuple[str, str]:
        return self.rng.choice(SHORT_SUMMARIES), self.rng.choice(LONG_SUMMARIES)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _bare_name(original_filename: Optional[str]) -> str:
    return os.path.splitext(os.path.basename(original_filename or ""))[0]


def parse_filename(original_filename: str) -> Tuple[str, str]:
    """'Dune-Frank Herbert.pdf' -> ('Dune', 'Frank Herbert')."""
    parts = re.split(r"[-_]", _bare_name(original_filename))
    title = parts[0].strip() if parts else ""
    author = parts[1].strip() if len(parts) > 1 else ""
    return title or DEFAULT_TITLE, author or DEFAULT_AUTHOR


def read_pdf_sample(file_path: str, max_chars: int = TEXT_SAMPLE_CHARS) -> Tuple[str, int]:
    """
    Returns (leading text, page count).
    Stops extracting once max_chars of text have been collected.
    """
    reader = pypdf.PdfReader(file_path)
    page_count = len(reader.pages)
    collected: List[str] = []
    length = 0
    for page in reader.pages:
        text = page.extract_text() or ""
        collected.append(text)
        length += len(text)
        if length >= max_chars:
            break
    return "\n".join(collected)[:max_chars], page_count


def title_author_from_text(text: str) -> Tuple[Optional[str], Optional[str]]:
    """First non-blank line as title (6-99 chars), second as author (4-49 chars)."""
    lines = [line for line in text.split("\n") if line.strip()]
    title = author = None
    if lines and 5 < len(lines[0]) < 100:
        title = lines[0].strip()
    if len(lines) > 1 and 3 < len(lines[1]) < 50:
        author = lines[1].strip()
    return title, author


# ── Extractor ─────────────────────────────────────────────────────────────────

class MetadataExtractor:

    def __init__(self, classifier: Optional[MetadataClassifier] = None):
        self.classifier = classifier or PlaceholderClassifier()

    def extract(self, file_path: str, original_filename: str) -> ExtractedMetadata:
        try:
            return self._extract(file_path, original_filename)
        except Exception as e:
            logger.error(f"Metadata extraction failed for '{original_filename}': {e}")
            return ExtractedMetadata(
                title=_bare_name(original_filename) or DEFAULT_TITLE,
                author=DEFAULT_AUTHOR,
                genre=FALLBACK_GENRE,
                summary_short=FALLBACK_SUMMARY_SHORT,
                summary_long=FALLBACK_SUMMARY_LONG,
                cover_image_url=None,
                metadata={"error": str(e)},
            )

    def _extract(self, file_path: str, original_filename: str) -> ExtractedMetadata:
        title, author = parse_filename(original_filename)

        page_count = None
        if is_pdf(file_path):
            try:
                text, page_count = read_pdf_sample(file_path)
                text_title, text_author = title_author_from_text(text)
                title = text_title or title
                author = text_author or author
            except Exception as e:
                logger.info(f"Could not parse PDF text, using filename: {e}")

        genre = self.classifier.classify_genre(title, author)
        summary_short, summary_long = self.classifier.summarize(title, author)

        return ExtractedMetadata(
            title=title,
            author=author,
            genre=genre,
            summary_short=summary_short,
            summary_long=summary_long,
            cover_image_url=self.generate_cover(file_path, title, author),
            metadata={
                "extracted_from": "filename",
                "file_size": os.path.getsize(file_path),
                "pages": page_count,
            },
        )

    def generate_cover(self, file_path: str, title: str, author: str) -> Optional[str]:
        """Cover extraction is not implemented; always None."""
        return None
