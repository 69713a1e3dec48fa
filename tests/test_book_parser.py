"""Tests for best-effort metadata extraction."""

import random
from pathlib import Path

from conftest import make_pdf

from bookstream.services.book_parser import (
    DEFAULT_AUTHOR,
    DEFAULT_TITLE,
    FALLBACK_GENRE,
    GENRES,
    LONG_SUMMARIES,
    SHORT_SUMMARIES,
    MetadataClassifier,
    MetadataExtractor,
    PlaceholderClassifier,
    parse_filename,
    title_author_from_text,
)


class TestParseFilename:
    def test_title_and_author(self) -> None:
        assert parse_filename("Dune-Frank Herbert.pdf") == ("Dune", "Frank Herbert")

    def test_underscore_separator(self) -> None:
        assert parse_filename("Emma_Jane Austen_1815.epub") == ("Emma", "Jane Austen")

    def test_no_separator(self) -> None:
        assert parse_filename("manuscript.pdf") == ("manuscript", DEFAULT_AUTHOR)

    def test_empty_tokens(self) -> None:
        assert parse_filename("-.pdf") == (DEFAULT_TITLE, DEFAULT_AUTHOR)


class TestTitleAuthorFromText:
    def test_plausible_lines(self) -> None:
        assert title_author_from_text("The Long Voyage\n\nJane Doe\nChapter 1") == ("The Long Voyage", "Jane Doe")

    def test_short_title_line_rejected(self) -> None:
        assert title_author_from_text("Dune\nFrank Herbert") == (None, "Frank Herbert")

    def test_long_author_line_rejected(self) -> None:
        author_line = "x" * 60
        assert title_author_from_text(f"A Proper Title\n{author_line}") == ("A Proper Title", None)

    def test_blank_text(self) -> None:
        assert title_author_from_text("\n \n") == (None, None)


class TestMetadataExtractor:
    def test_pdf_text_overrides_filename(self, tmp_path: Path, extractor) -> None:
        path = tmp_path / "upload.pdf"
        path.write_bytes(make_pdf(["The Long Voyage", "Jane Doe"], pages=3))

        meta = extractor.extract(str(path), "voyage-anon.pdf")

        assert meta.title == "The Long Voyage"
        assert meta.author == "Jane Doe"
        assert meta.metadata["pages"] == 3
        assert meta.metadata["extracted_from"] == "filename"
        assert meta.metadata["file_size"] == path.stat().st_size

    def test_epub_uses_filename_only(self, tmp_path: Path, extractor) -> None:
        path = tmp_path / "upload.epub"
        path.write_bytes(b"PK\x03\x04 not really an epub")

        meta = extractor.extract(str(path), "Dune-Frank Herbert.epub")

        assert (meta.title, meta.author) == ("Dune", "Frank Herbert")
        assert meta.metadata["pages"] is None

    def test_zero_byte_pdf(self, tmp_path: Path, extractor) -> None:
        path = tmp_path / "empty.pdf"
        path.write_bytes(b"")

        meta = extractor.extract(str(path), "manuscript.pdf")

        assert meta.title == "manuscript"
        assert meta.author == DEFAULT_AUTHOR
        assert meta.metadata["file_size"] == 0
        assert meta.metadata["pages"] is None

    def test_binary_garbage_named_pdf(self, tmp_path: Path, extractor) -> None:
        path = tmp_path / "garbage.pdf"
        path.write_bytes(bytes(range(256)) * 4)

        meta = extractor.extract(str(path), "Garbage_Someone.pdf")

        assert (meta.title, meta.author) == ("Garbage", "Someone")

    def test_missing_file_degrades_instead_of_raising(self, tmp_path: Path, extractor) -> None:
        meta = extractor.extract(str(tmp_path / "nope.pdf"), "Lost Book-Somebody.pdf")

        assert meta.title == "Lost Book-Somebody"
        assert meta.author == DEFAULT_AUTHOR
        assert meta.genre == FALLBACK_GENRE
        assert meta.cover_image_url is None
        assert "error" in meta.metadata

    def test_placeholder_values_come_from_fixed_pools(self, tmp_path: Path, extractor) -> None:
        path = tmp_path / "a.epub"
        path.write_bytes(b"x")

        for _ in range(20):
            meta = extractor.extract(str(path), "a.epub")
            assert meta.genre in GENRES
            assert meta.summary_short in SHORT_SUMMARIES
            assert meta.summary_long in LONG_SUMMARIES
            assert meta.cover_image_url is None

    def test_classifier_is_swappable(self, tmp_path: Path) -> None:
        class FixedClassifier(MetadataClassifier):
            def classify_genre(self, title: str, author: str) -> str:
                return "Poetry"

            def summarize(self, title: str, author: str):
                return f"{title} in brief", f"{title} at length"

        path = tmp_path / "a.epub"
        path.write_bytes(b"x")
        meta = MetadataExtractor(FixedClassifier()).extract(str(path), "Odes-Keats.epub")

        assert meta.genre == "Poetry"
        assert meta.summary_short == "Odes in brief"

    def test_classifier_failure_degrades(self, tmp_path: Path) -> None:
        class BrokenClassifier(PlaceholderClassifier):
            def classify_genre(self, title: str, author: str) -> str:
                raise RuntimeError("model offline")

        path = tmp_path / "a.epub"
        path.write_bytes(b"x")
        meta = MetadataExtractor(BrokenClassifier(random.Random(1))).extract(str(path), "Odes-Keats.epub")

        assert meta.title == "Odes-Keats"
        assert meta.metadata == {"error": "model offline"}
