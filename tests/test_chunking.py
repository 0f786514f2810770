"""Unit tests for the chunking module.

Tests cover:
  - chunk: paragraph alignment, target sizing, trailing-chunk folding, context overlap
  - merge: ordered concatenation without deduplication
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

from scanclean.text.chunking import PARAGRAPH_SEPARATOR, chunk, merge


def make_document(paragraphs: int, words: int = 100) -> str:
    """Single-line paragraphs of distinct words separated by blank lines."""
    return PARAGRAPH_SEPARATOR.join(" ".join(f"w{p}x{i}" for i in range(words)) for p in range(paragraphs))


# ===========================================================================
# chunk tests
# ===========================================================================


class TestChunk:
    def test_small_content_is_one_chunk(self):
        content = make_document(3)
        chunks = chunk(content, target_words=1000)
        assert len(chunks) == 1
        assert chunks[0].text == content
        assert chunks[0].previous_overlap == ""

    def test_chunks_close_at_target(self):
        chunks = chunk(make_document(90), target_words=3000, overlap_words=200)
        assert len(chunks) == 3
        assert [c.word_count for c in chunks] == [3000, 3000, 3000]
        assert [c.index for c in chunks] == [0, 1, 2]

    def test_paragraphs_never_split(self):
        content = make_document(25)
        paragraphs = set(content.split(PARAGRAPH_SEPARATOR))
        for current in chunk(content, target_words=1000, overlap_words=0):
            assert set(current.text.split(PARAGRAPH_SEPARATOR)) <= paragraphs

    def test_line_ranges(self):
        chunks = chunk(make_document(30), target_words=1000, overlap_words=0)
        assert (chunks[0].start_line, chunks[0].end_line) == (0, 18)
        assert chunks[1].start_line == 20

    def test_short_trailing_chunk_folded_into_previous(self):
        chunks = chunk(make_document(23), target_words=1000, overlap_words=0, min_words=500)
        assert len(chunks) == 2
        assert chunks[1].word_count == 1300
        assert chunks[1].start_line == 20

    def test_trailing_chunk_above_minimum_kept(self):
        chunks = chunk(make_document(26), target_words=1000, overlap_words=0, min_words=500)
        assert [c.word_count for c in chunks] == [1000, 1000, 600]

    def test_previous_overlap_is_context_only(self):
        content = make_document(30)
        paragraphs = content.split(PARAGRAPH_SEPARATOR)
        chunks = chunk(content, target_words=1000, overlap_words=200)
        assert chunks[1].previous_overlap == PARAGRAPH_SEPARATOR.join(paragraphs[8:10])
        assert not chunks[1].text.startswith(paragraphs[8])

    def test_oversized_paragraph_stands_alone(self):
        content = PARAGRAPH_SEPARATOR.join([make_document(1, 50), make_document(1, 2000), make_document(1, 50)])
        chunks = chunk(content, target_words=1000, overlap_words=0, min_words=0)
        assert [c.word_count for c in chunks] == [50, 2000, 50]


# ===========================================================================
# merge tests
# ===========================================================================


class TestMerge:
    def test_round_trip(self):
        content = make_document(30)
        assert merge([c.text for c in chunk(content, target_words=1000)]) == content

    def test_empty_chunks_skipped(self):
        assert merge(["a\n", "", "  ", "b"]) == "a\n\nb"

    def test_repeated_paragraphs_kept(self):
        assert merge(["same", "same"]) == "same\n\nsame"
