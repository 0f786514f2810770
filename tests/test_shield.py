"""Unit tests for the shield module.

Tests cover:
  - has_code / has_math detection
  - extract_code, extract_math, extract_tables placeholder substitution
  - extract / restore round trip and placeholder collision avoidance
  - nested (code or math inside tables) and adjacent protected elements
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import re

from scanclean.text import shield

CODE_DOC = "Intro text\n```python\nx = [1]\n```\nThen `inline()` here"
TABLE_DOC = "Before\n| a | b |\n| --- | --- |\n| 1 | 2 |\nAfter"


# ===========================================================================
# Detection
# ===========================================================================


class TestDetection:
    def test_fence_is_code(self):
        assert shield.has_code(CODE_DOC) is True

    def test_prose_is_not_code(self):
        assert shield.has_code("A quiet afternoon by the river.") is False

    def test_formula_is_math(self):
        assert shield.has_math("The area is x² plus y².") is True

    def test_prose_is_not_math(self):
        assert shield.has_math("A quiet afternoon by the river.") is False


# ===========================================================================
# Extraction
# ===========================================================================


class TestExtraction:
    def test_code_placeholders(self):
        text, store = shield.extract_code(CODE_DOC)
        assert len(store) == 2
        assert "```" not in text
        assert "⟦CODE0⟧" in text and "⟦CODE1⟧" in text

    def test_table_becomes_one_line(self):
        text, store = shield.extract_tables(TABLE_DOC)
        assert text == "Before\n⟦TABLE0⟧\nAfter"
        assert store["⟦TABLE0⟧"] == "| a | b |\n| --- | --- |\n| 1 | 2 |"

    def test_pipe_lines_without_separator_kept(self):
        text, store = shield.extract_tables("| a | b |\n| 1 | 2 |")
        assert store == {}
        assert text == "| a | b |\n| 1 | 2 |"

    def test_math_expression(self):
        text, store = shield.extract_math("where σ² is the variance")
        assert store
        assert "σ²" not in text

    def test_existing_token_never_reused(self):
        text, store = shield.protect_pattern("keep ⟦X0⟧ and foo", re.compile("foo"), "X")
        assert list(store) == ["⟦X1⟧"]
        assert text == "keep ⟦X0⟧ and ⟦X1⟧"


# ===========================================================================
# extract / restore
# ===========================================================================


class TestRoundTrip:
    def test_round_trip_restores_everything(self):
        content = CODE_DOC + "\n" + TABLE_DOC + "\nand x² too"
        shielded, content_shield = shield.extract(content)
        assert content_shield.count >= 4
        assert shield.restore(shielded, content_shield) == content

    def test_preserve_code_off(self):
        shielded, content_shield = shield.extract(CODE_DOC, preserve_code=False)
        assert content_shield.code == {}
        assert shielded == CODE_DOC

    def test_plain_prose_empty_shield(self):
        shielded, content_shield = shield.extract("Just words.")
        assert content_shield.is_empty
        assert shielded == "Just words."


# ===========================================================================
# Nested and adjacent elements
# ===========================================================================


class TestNestedElements:
    def test_code_and_math_inside_table_row(self):
        content = "```\nrun()\n```\n| name | value |\n| --- | --- |\n| `c` | σ² |\nAfter"
        shielded, content_shield = shield.extract(content)
        assert shielded == "⟦CODE0⟧\n⟦TABLE0⟧\nAfter"
        assert content_shield.tables["⟦TABLE0⟧"].endswith("| ⟦CODE1⟧ | ⟦MATH0⟧ |")
        assert shield.restore(shielded, content_shield) == content

    def test_math_inside_table(self):
        content = "| Term | Formula |\n| --- | --- |\n| area | x² |"
        shielded, content_shield = shield.extract(content)
        assert shielded == "⟦TABLE0⟧"
        assert list(content_shield.math.values()) == ["x²"]
        assert shield.restore(shielded, content_shield) == content

    def test_fenced_block_with_pipes_is_code_not_table(self):
        content = "Setup\n```text\n| a | b |\n| --- | --- |\n```\nDone"
        shielded, content_shield = shield.extract(content)
        assert shielded == "Setup\n⟦CODE0⟧\nDone"
        assert content_shield.tables == {}
        assert shield.restore(shielded, content_shield) == content

    def test_literal_placeholders_in_source(self):
        content = "Literal ⟦CODE0⟧ and ⟦TABLE0⟧ text\n```\nx\n```\n| a |\n| --- |"
        shielded, content_shield = shield.extract(content)
        assert shielded == "Literal ⟦CODE0⟧ and ⟦TABLE0⟧ text\n⟦CODE1⟧\n⟦TABLE1⟧"
        assert shield.restore(shielded, content_shield) == content


class TestAdjacentElements:
    def test_code_touching_math(self):
        content = "def `f`x² end"
        shielded, content_shield = shield.extract(content)
        assert shielded == "def ⟦CODE0⟧⟦MATH0⟧ end"
        assert shield.restore(shielded, content_shield) == content

    def test_back_to_back_inline_code(self):
        content = "def `a``b` end"
        shielded, content_shield = shield.extract(content)
        assert shielded == "def ⟦CODE0⟧⟦CODE1⟧ end"
        assert shield.restore(shielded, content_shield) == content

    def test_tables_split_by_blank_line(self):
        content = "| a |\n| --- |\n\n| b |\n| --- |"
        shielded, content_shield = shield.extract(content)
        assert shielded == "⟦TABLE0⟧\n\n⟦TABLE1⟧"
        assert shield.restore(shielded, content_shield) == content
