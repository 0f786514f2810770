"""Character-level repair of OCR-derived Markdown.

Pure string-to-string functions with no external calls.  The full
normalization pass runs in a fixed order:

  1. fix_mojibake              -- UTF-8 text that was decoded as Windows-1252
  2. expand_ligatures          -- typographic ligatures (ﬁ, ﬂ, œ, ...)
  3. remove_invisible          -- zero-width and bidi control characters
  4. fix_ocr_misreads          -- O/0 and l/1 confusion in numeric contexts
  5. normalize_dashes          -- em-dash spacing, "--" to em-dash, remnants
  6. remove_decorative_dashes  -- divider lines and "— 12 —" page markers
  7. normalize_quotes          -- curly and angled quotes to ASCII

clean_special_characters() wraps that pass with the Markdown-level cleanup
used by the special-character step (formatting markers, images, brackets,
user-selected characters).  Fenced and inline code is set aside before any
of it runs and put back untouched afterwards.
"""

import logging
import re

from scanclean.text import shield

logger = logging.getLogger(__name__)

# ── Character maps ───────────────────────────────────────────────────────────

LIGATURES = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
    "ﬅ": "st",
    "ﬆ": "st",
    "Ĳ": "IJ",
    "ĳ": "ij",
    "Œ": "OE",
    "œ": "oe",
    "Æ": "AE",
    "æ": "ae",
}

# UTF-8 byte sequences rendered through Windows-1252.  Applied longest key
# first so that "â€”" wins over the bare "â€" fallback for a closing quote.
MOJIBAKE = {
    # Punctuation
    "â€”": "—",
    "â€“": "–",
    "â€œ": "“",
    "â€\x9d": "”",
    "â€˜": "‘",
    "â€™": "’",
    "â€¢": "•",
    "â€¦": "…",
    "â€": "”",
    # Greek
    "Ïƒ": "σ",
    "Îµ": "ε",
    "Î±": "α",
    "Î²": "β",
    "Î³": "γ",
    "Î´": "δ",
    "Î¼": "μ",
    "Ï€": "π",
    "Î£": "Σ",
    "Î”": "Δ",
    "Î©": "Ω",
    # Accented Latin
    "Ã©": "é",
    "Ã¨": "è",
    "Ã\xa0": "à",
    "Ã¡": "á",
    "Ã\xad": "í",
    "Ã³": "ó",
    "Ãº": "ú",
    "Ã±": "ñ",
    "Ã¼": "ü",
    "Ã¶": "ö",
    "Ã¤": "ä",
    "Ã§": "ç",
    # Math
    "âˆš": "√",
    "âˆž": "∞",
    "Â½": "½",
    "Â¼": "¼",
    "Â¾": "¾",
    "Â°": "°",
    "Â±": "±",
    "Ã—": "×",
    "Ã·": "÷",
    "â‰¤": "≤",
    "â‰¥": "≥",
    "â‰ˆ": "≈",
    # Subscripts
    "â‚‚": "₂",
    "â‚ƒ": "₃",
    "â‚„": "₄",
    # Symbols
    "Â©": "©",
    "Â®": "®",
    "â„¢": "™",
}
_MOJIBAKE_KEYS = tuple(sorted(MOJIBAKE, key=len, reverse=True))

INVISIBLE_CHARS = frozenset(
    {
        "\u200b",  # zero-width space
        "\u200c",  # zero-width non-joiner
        "\u200d",  # zero-width joiner
        "\ufeff",  # byte-order mark
        "\u00ad",  # soft hyphen
        "\u2060",  # word joiner
        "\u180e",  # Mongolian vowel separator
        "\u200e",  # LTR mark
        "\u200f",  # RTL mark
        "\u202a",  # bidi embeddings and overrides
        "\u202b",
        "\u202c",
        "\u202d",
        "\u202e",
    }
)
_INVISIBLE_RE = re.compile("[" + "".join(sorted(INVISIBLE_CHARS)) + "]")

DOUBLE_QUOTES = "“”„‟«»″"
SINGLE_QUOTES = "‘’‚‛‹›`´′"
_QUOTE_TABLE = str.maketrans({**{c: '"' for c in DOUBLE_QUOTES}, **{c: "'" for c in SINGLE_QUOTES}})

EM_DASH = "—"

# ── Regex patterns ───────────────────────────────────────────────────────────

# Capital O read in place of zero: "1O5", "2.O", "1OO"
OCR_ZERO_RE = re.compile(r"(?:(?<=\d)|(?<=\d[.,]))O(?=[\dO]|\b)")

# Lowercase l read in place of one: "2l4" or a leading "l9"
OCR_ONE_RE = re.compile(r"(?<=\d)l(?=\d)|\bl(?=\d)")

# Markdown horizontal rules and table separator rows are never dash-normalized
PROTECTED_LINE_RE = re.compile(r"^\s*(?:-{3,}|\*{3,}|_{3,})\s*$|^\s*\|?[\s\-:|]*-{3,}[\s\-:|]*\|?\s*$")

# Em-dash remnants produced by OCR ("— -", "-—", "——") collapse to one em-dash
DASH_REMNANT_RES = (
    (re.compile(r"—\s+-(?!\d)"), "—"),
    (re.compile(r"—-"), "—"),
    (re.compile(r"(?<!\d)-\s+—"), "—"),
    (re.compile(r"-—"), "—"),
    (re.compile(r"—{2,}"), "—"),
    (re.compile(r"—\s+—"), "—"),
)

# Two or more hyphen-minus characters act as an em-dash (HTML comment delimiters excepted)
DOUBLE_HYPHEN_RE = re.compile(r"(?<!<!)-{2,}(?!>)")

# Em-dash with missing or irregular spacing between two non-space characters
INNER_EM_DASH_RE = re.compile(r"(?<=\S)[ \t]*—[ \t]*(?=\S)")

# Dialogue-style em-dash opening a line
LEADING_EM_DASH_RE = re.compile(r"^([ \t]*)—[ \t]*(?=\S)")

# A line made only of em-dashes and whitespace
DASH_DIVIDER_RE = re.compile(r"^[\s—]*—[\s—]*$")

# "— 12 —" or "— xiv —" page marker
DASH_PAGE_MARKER_RE = re.compile(r"^\s*—\s*[\divxlcdmIVXLCDM]+\s*—\s*$")

# Decorative runs of em-dashes inside a line
DASH_RUN_RE = re.compile(r"(?:—\s*){2,}")

# Runs of spaces after the first non-space character (indentation is kept)
MULTI_SPACE_RE = re.compile(r"(?<=\S) {2,}")

# Markdown emphasis markers
BOLD_STAR_RE = re.compile(r"\*\*([^*]+)\*\*")
BOLD_UNDERSCORE_RE = re.compile(r"__([^_]+)__")
ITALIC_STAR_RE = re.compile(r"(?<![*\n])\*([^*\n]+)\*(?!\*)")
ITALIC_UNDERSCORE_RE = re.compile(r"(?<![_\n\w])_([^_\n]+)_(?![_\w])")

# Markdown image: ![alt](src)
IMAGE_RE = re.compile(r"!\[.*?\]\(.*?\)")

# Empty parentheses left after link or citation removal
EMPTY_PARENS_RE = re.compile(r"\(\s*\)")


# ── Individual passes ────────────────────────────────────────────────────────


def fix_mojibake(text: str) -> str:
    """Repair UTF-8 sequences that were decoded as Windows-1252."""
    if "Ã" not in text and "Â" not in text and "â" not in text and "Î" not in text and "Ï" not in text:
        return text
    for key in _MOJIBAKE_KEYS:
        if key in text:
            text = text.replace(key, MOJIBAKE[key])
    return text


def expand_ligatures(text: str) -> str:
    """Expand single-codepoint ligatures into their component letters."""
    for ligature, expansion in LIGATURES.items():
        if ligature in text:
            text = text.replace(ligature, expansion)
    return text


def remove_invisible(text: str) -> str:
    """Strip zero-width, soft-hyphen and bidi control characters."""
    return _INVISIBLE_RE.sub("", text)


def _substitute_until_stable(pattern: re.Pattern, replacement: str, text: str) -> str:
    # Each pass can expose a new numeric neighbour ("1OO" -> "10O" -> "100")
    for _ in range(8):
        new_text = pattern.sub(replacement, text)
        if new_text == text:
            break
        text = new_text
    return text


def fix_ocr_misreads(text: str) -> str:
    """Correct letter-for-digit confusions, but only inside numeric contexts."""
    text = _substitute_until_stable(OCR_ZERO_RE, "0", text)
    return _substitute_until_stable(OCR_ONE_RE, "1", text)


def _clean_dash_remnants(line: str) -> str:
    for pattern, replacement in DASH_REMNANT_RES:
        line = pattern.sub(replacement, line)
    return line.replace("— - ", "— ").replace(" - —", " —")


def _normalize_dash_line(line: str) -> str:
    if PROTECTED_LINE_RE.match(line):
        return line
    line = _clean_dash_remnants(line)
    line = DOUBLE_HYPHEN_RE.sub(EM_DASH, line)
    line = line.replace("―", EM_DASH)
    line = INNER_EM_DASH_RE.sub(" — ", line)
    line = LEADING_EM_DASH_RE.sub(r"\1— ", line)
    line = line.replace(" – ", " — ")
    line = line.replace("‒", "-").replace("‑", "-")
    line = MULTI_SPACE_RE.sub(" ", line)
    return _clean_dash_remnants(line)


def normalize_dashes(text: str) -> str:
    """Normalize dash usage line by line.

    Grammatical em-dashes are kept and spaced on both sides, "--" becomes an
    em-dash, figure dashes and non-breaking hyphens become hyphens.  Markdown
    horizontal rules and table separator rows are left alone.
    """
    return "\n".join(_normalize_dash_line(line) for line in text.split("\n"))


def remove_decorative_dashes(text: str) -> str:
    """Drop em-dash divider lines and page markers, and decorative dash runs."""
    kept = []
    for line in text.split("\n"):
        if DASH_DIVIDER_RE.match(line) or DASH_PAGE_MARKER_RE.match(line):
            continue
        if DASH_RUN_RE.search(line):
            line = MULTI_SPACE_RE.sub(" ", DASH_RUN_RE.sub("", line)).rstrip()
        kept.append(line)
    return "\n".join(kept)


def normalize_quotes(text: str) -> str:
    """Map typographic quotation marks and primes to ASCII quotes."""
    return text.translate(_QUOTE_TABLE)


def normalize(text: str) -> str:
    """Run the full character-repair pass in its fixed order."""
    text = fix_mojibake(text)
    text = expand_ligatures(text)
    text = remove_invisible(text)
    text = fix_ocr_misreads(text)
    text = normalize_dashes(text)
    text = remove_decorative_dashes(text)
    return normalize_quotes(text)


# ── Markdown-level cleanup ───────────────────────────────────────────────────


def remove_markdown_formatting(text: str) -> str:
    """Remove bold and italic markers while keeping the emphasised text."""
    text = BOLD_STAR_RE.sub(r"\1", text)
    text = BOLD_UNDERSCORE_RE.sub(r"\1", text)
    text = ITALIC_STAR_RE.sub(r"\1", text)
    return ITALIC_UNDERSCORE_RE.sub(r"\1", text)


def clean_special_characters(text: str, characters: list[str] | tuple[str, ...] = ()) -> str:
    """Full character cleanup used by the special-character step.

    Code is set aside first so that backticks, braces and emphasis-looking
    identifiers inside it survive.  Square brackets become parentheses; the
    em-dash is never removed even when listed in ``characters``.
    """
    result, code_blocks = shield.extract_code(text)

    result = normalize(result)
    result = remove_markdown_formatting(result)
    result = IMAGE_RE.sub("", result)
    result = result.replace("[", "(").replace("]", ")")

    for char in characters:
        if char in ("[", "]", EM_DASH) or not char:
            continue
        result = result.replace(char.replace("\\", ""), "")

    result = EMPTY_PARENS_RE.sub("", result)
    result = MULTI_SPACE_RE.sub(" ", result)

    restored = shield.restore_placeholders(result, code_blocks)
    logger.debug("clean_special_characters: %d -> %d characters", len(text), len(restored))
    return restored
