import pytest

from chunking.chunker import TextChunker
from validator.chunk_validator import ValidationError, validate_chunks, validate_document
from tests.conftest import make_paragraph


def _chunk(doc_id, index, total, content="text"):
    return {
        "id": f"{doc_id}_chunk_{index}",
        "content": content,
        "metadata": {"original_id": doc_id, "chunk_index": index, "total_chunks": total},
    }


class TestValidateDocument:
    """Tests for validate_document."""

    def test_valid_document(self):
        doc = {"id": "kb-1", "content": "Some text", "metadata": {"title": "T"}}

        assert validate_document(doc) is doc

    def test_metadata_is_optional(self):
        validate_document({"id": 7, "content": "Some text"})

    @pytest.mark.parametrize(
        "document, message",
        [
            (["kb-1", "text"], "mapping"),
            ({"content": "text"}, "'id'"),
            ({"id": "  ", "content": "text"}, "'id'"),
            ({"id": "kb-1", "content": None}, "no content"),
            ({"id": "kb-1", "content": " \n "}, "no content"),
            ({"id": "kb-1", "content": "text", "metadata": "title"}, "metadata"),
        ],
    )
    def test_invalid_document(self, document, message):
        with pytest.raises(ValidationError, match=message):
            validate_document(document)

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)


class TestValidateChunks:
    """Tests for validate_chunks."""

    def test_chunker_output_passes(self, long_document):
        chunker = TextChunker()
        other = {"id": "other", "content": "\n\n".join(make_paragraph(i) for i in range(12))}
        chunks = chunker.chunk_documents([long_document, other])

        assert validate_chunks(chunks) is chunks

    def test_empty_list_passes(self):
        assert validate_chunks([]) == []

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            validate_chunks({"chunks": []})

    def test_missing_id(self):
        chunk = _chunk("a", 0, 1)
        chunk["id"] = ""

        with pytest.raises(ValidationError, match="'id'"):
            validate_chunks([chunk])

    def test_non_string_content(self):
        chunk = _chunk("a", 0, 1, content=None)

        with pytest.raises(ValidationError, match="'content'"):
            validate_chunks([chunk])

    def test_missing_original_id(self):
        chunk = _chunk("a", 0, 1)
        del chunk["metadata"]["original_id"]

        with pytest.raises(ValidationError, match="original_id"):
            validate_chunks([chunk])

    def test_gap_in_indices(self):
        with pytest.raises(ValidationError, match="chunk_index"):
            validate_chunks([_chunk("a", 0, 2), _chunk("a", 2, 2)])

    def test_repeated_index(self):
        with pytest.raises(ValidationError, match="chunk_index"):
            validate_chunks([_chunk("a", 0, 2), _chunk("a", 0, 2)])

    def test_total_mismatch(self):
        with pytest.raises(ValidationError, match="total_chunks"):
            validate_chunks([_chunk("a", 0, 3), _chunk("a", 1, 3)])

    def test_runs_are_checked_per_document(self):
        chunks = [_chunk("a", 0, 2), _chunk("b", 0, 1), _chunk("a", 1, 2)]

        assert validate_chunks(chunks) == chunks
