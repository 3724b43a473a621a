"""
Pytest configuration and fixtures for the chunking tests.
"""

from unittest.mock import Mock

import pytest

from chunking.chunker import TextChunker


def make_paragraph(index: int, length: int = 80) -> str:
    """A paragraph of exactly `length` characters with no inner sentence ends."""
    return (f"Paragraph {index:02d} " + "abcdefghij" * (length // 10 + 2))[: length - 1] + "."


def make_words(count: int) -> str:
    """Whitespace-separated filler text."""
    return " ".join(f"word{i:03d}" for i in range(count))


@pytest.fixture
def mock_logger():
    """Logger stand-in; assert on .warning / .error calls."""
    return Mock()


@pytest.fixture
def chunker(mock_logger):
    """Chunker with an injected mock logger."""
    return TextChunker(logger=mock_logger)


@pytest.fixture
def paragraphs():
    """Ten 80-character paragraphs."""
    return [make_paragraph(i) for i in range(10)]


@pytest.fixture
def long_document(paragraphs):
    """Document that splits into two chunks with the default settings."""
    return {
        "id": "kb-reading-101",
        "content": "\n\n".join(paragraphs),
        "metadata": {"title": "Reading 101", "category": "habits", "tags": ["reading"]},
    }
