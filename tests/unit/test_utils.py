import pytest

from embedstore.common.utils import chunk_text, clean_text


class TestChunkText:
    """Unit tests for the shared chunk_text helper."""

    @pytest.mark.unit
    def test_short_text_returns_single_chunk(self):
        """Texts shorter than chunk_size should not be split."""
        text = "Short text"
        assert chunk_text(text, chunk_size=50, chunk_overlap=10) == [text]

    @pytest.mark.unit
    def test_empty_text_returns_empty_list(self):
        """Empty input should return an empty list."""
        assert chunk_text("", chunk_size=50, chunk_overlap=10) == []

    @pytest.mark.unit
    def test_overlap_equal_or_exceeds_chunk_size_raises(self):
        """Invalid overlap that prevents progress should raise an error."""
        with pytest.raises(ValueError):
            chunk_text("content", chunk_size=100, chunk_overlap=100)

        with pytest.raises(ValueError):
            chunk_text("content", chunk_size=50, chunk_overlap=75)

    @pytest.mark.unit
    def test_negative_or_zero_chunk_size_raises(self):
        """chunk_size must be positive."""
        with pytest.raises(ValueError):
            chunk_text("content", chunk_size=0, chunk_overlap=10)

    @pytest.mark.unit
    def test_negative_overlap_raises(self):
        """chunk_overlap cannot be negative."""
        with pytest.raises(ValueError):
            chunk_text("content", chunk_size=10, chunk_overlap=-1)

    @pytest.mark.unit
    def test_long_text_is_covered_and_terminates(self):
        """Every character should land in some chunk and the loop must end."""
        text = "abcdefghij" * 25
        chunks = chunk_text(text, chunk_size=40, chunk_overlap=10)

        assert len(chunks) > 1
        assert all(len(c) <= 40 for c in chunks)
        assert chunks[0] == text[:40]
        assert text.endswith(chunks[-1])

    @pytest.mark.unit
    def test_chunks_overlap(self):
        text = "".join(chr(ord("a") + i % 26) for i in range(100))
        chunks = chunk_text(text, chunk_size=30, chunk_overlap=5)
        assert chunks[1].startswith(chunks[0][-5:])

    @pytest.mark.unit
    def test_prefers_sentence_boundary(self):
        text = "First sentence is here. " + "x" * 60
        chunks = chunk_text(text, chunk_size=40, chunk_overlap=5)
        assert chunks[0] == "First sentence is here."


class TestCleanText:
    """Unit tests for clean_text."""

    @pytest.mark.unit
    def test_removes_bom_and_replacement_characters(self):
        assert clean_text("\ufeffhello\ufffd world") == "hello world"

    @pytest.mark.unit
    def test_nfkc_normalization(self):
        assert clean_text("\uff21\uff22\uff23") == "ABC"
        assert clean_text("\uff21\uff22\uff23", normalize=False) == "\uff21\uff22\uff23"

    @pytest.mark.unit
    def test_ascii_only(self):
        assert clean_text("caf\u00e9 menu", ascii_only=True) == "caf menu"

    @pytest.mark.unit
    def test_empty(self):
        assert clean_text("") == ""
        assert clean_text(None) == ""
