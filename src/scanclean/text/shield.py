"""Protect tables, code and formulas from destructive text rewrites.

Before a step applies blanket pattern deletion (citations, footnote markers,
special characters) or sends text to the analysis service, the protected
elements are swapped for placeholder tokens and swapped back afterwards:

    shielded, content_shield = extract(content)
    shielded = remove_citations(shielded, ...)
    content = restore(shielded, content_shield)

Extraction order is code, then math, then tables; restoration runs in the
exact reverse so a table that swallowed a code placeholder gets it back.
Placeholders look like ``⟦CODE0⟧`` -- mathematical white square brackets
and no underscores, so neither prose regexes nor the special-character
step touch them.  A token that already occurs in the input is never
issued, which keeps extract/restore an exact round trip.
"""

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

OPEN = "⟦"
CLOSE = "⟧"

# ── Detection ────────────────────────────────────────────────────────────────

# Keywords that suggest source code somewhere in the document
CODE_KEYWORDS = (
    "def ",
    "class ",
    "import ",
    "func ",
    "let ",
    "var ",
    "struct ",
    "function ",
    "const ",
    "public ",
    "private ",
    "static ",
)

SUPERSCRIPTS = "⁰¹²³⁴⁵⁶⁷⁸⁹"
SUBSCRIPTS = "₀₁₂₃₄₅₆₇₈₉"
GREEK = "α-ωΑ-Ω"

# Math symbols, or a single-letter variable raised to a power ("x²")
MATH_INDICATOR_RE = re.compile(
    r"[σεπαβγδλμθΣΔΠΩ√∑∫∂≈≠≤≥±]" r"|\b(?:equation|formula|theorem)\b" rf"|(?<![A-Za-z])[A-Za-z][{SUPERSCRIPTS}]",
    re.IGNORECASE,
)

# ── Extraction patterns ──────────────────────────────────────────────────────

# ```lang\n ... ``` fenced block
FENCED_CODE_RE = re.compile(r"```[a-zA-Z0-9_+\-]*\n[\s\S]*?```")

# `inline code`
INLINE_CODE_RE = re.compile(r"`[^`\n]+`")

# Table separator row: | --- | :---: |
TABLE_SEPARATOR_RE = re.compile(r"^\s*\|[\s\-:|]*-[\s\-:|]*\|\s*$")

# Formula-like expressions, tried in this order
MATH_PATTERNS = (
    # Equation line with a Greek letter, "=", and a power or operator
    re.compile(rf"^.*[{GREEK}].*=.*[{SUPERSCRIPTS}√∑∫∂].*$", re.MULTILINE),
    # Bullet property line: "- Variance: σ²"
    re.compile(rf"^\s*[-•]\s*[A-Za-z]+:.*[{SUPERSCRIPTS}].*$", re.MULTILINE),
    # "where σ² is the variance"
    re.compile(rf"[Ww]here\s+[{GREEK}][^.\n]*[{SUPERSCRIPTS}{SUBSCRIPTS}]"),
    # Single-letter variable with exponent: x², σ³
    re.compile(rf"(?<![A-Za-z])[a-zA-Z{GREEK}][{SUPERSCRIPTS}]+"),
    # Trig or log function with exponent: sin²
    re.compile(rf"\b(?:sin|cos|tan|log|ln|exp)[{SUPERSCRIPTS}]"),
    # Simple formula: E = mc²
    re.compile(rf"\b[A-Z]\s*=\s*[a-zA-Z{GREEK}]+[{SUPERSCRIPTS}]"),
)


def has_code(content: str) -> bool:
    """True when the document looks like it contains source code."""
    if "```" in content:
        return True
    return any(keyword in content for keyword in CODE_KEYWORDS)


def has_math(content: str) -> bool:
    """True when the document looks like it contains formulas."""
    return MATH_INDICATOR_RE.search(content) is not None


# ── Placeholder primitives ───────────────────────────────────────────────────


class _TokenIssuer:
    """Hands out placeholder tokens that never collide with the source text."""

    def __init__(self, kind: str, source: str):
        self.kind = kind
        self.source = source
        self.counter = 0

    def next(self) -> str:
        while True:
            token = f"{OPEN}{self.kind}{self.counter}{CLOSE}"
            self.counter += 1
            if token not in self.source:
                return token


def _extract_pattern(text: str, pattern: re.Pattern, issuer: _TokenIssuer, store: dict[str, str]) -> str:
    def _swap(match: re.Match) -> str:
        token = issuer.next()
        store[token] = match.group(0)
        return token

    return pattern.sub(_swap, text)


def protect_pattern(text: str, pattern: re.Pattern, kind: str) -> tuple[str, dict[str, str]]:
    """Replace every match of pattern with a ``⟦KINDn⟧`` placeholder."""
    store: dict[str, str] = {}
    text = _extract_pattern(text, pattern, _TokenIssuer(kind, text), store)
    return text, store


def restore_placeholders(text: str, store: dict[str, str]) -> str:
    """Put extracted originals back, most recently extracted first."""
    for token in reversed(list(store)):
        text = text.replace(token, store[token])
    return text


def extract_code(text: str) -> tuple[str, dict[str, str]]:
    """Replace fenced blocks, then inline code spans, with placeholders."""
    store: dict[str, str] = {}
    issuer = _TokenIssuer("CODE", text)
    text = _extract_pattern(text, FENCED_CODE_RE, issuer, store)
    text = _extract_pattern(text, INLINE_CODE_RE, issuer, store)
    return text, store


def extract_math(text: str) -> tuple[str, dict[str, str]]:
    """Replace formula-like expressions with placeholders."""
    store: dict[str, str] = {}
    issuer = _TokenIssuer("MATH", text)
    for pattern in MATH_PATTERNS:
        text = _extract_pattern(text, pattern, issuer, store)
    return text, store


def _is_table_row(line: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def extract_tables(text: str) -> tuple[str, dict[str, str]]:
    """Replace Markdown tables with one placeholder line each.

    A table is a run of consecutive pipe-delimited lines, at least two long,
    containing a separator row.
    """
    store: dict[str, str] = {}
    issuer = _TokenIssuer("TABLE", text)
    lines = text.split("\n")
    output: list[str] = []
    i = 0
    while i < len(lines):
        if not _is_table_row(lines[i]):
            output.append(lines[i])
            i += 1
            continue
        j = i
        while j < len(lines) and _is_table_row(lines[j]):
            j += 1
        block = lines[i:j]
        if len(block) >= 2 and any(TABLE_SEPARATOR_RE.match(line) for line in block):
            token = issuer.next()
            store[token] = "\n".join(block)
            output.append(token)
        else:
            output.extend(block)
        i = j
    return "\n".join(output), store


# ── Bundle ───────────────────────────────────────────────────────────────────


@dataclass
class ContentShield:
    """The three placeholder maps produced by one extraction."""

    code: dict[str, str] = field(default_factory=dict)
    math: dict[str, str] = field(default_factory=dict)
    tables: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.code or self.math or self.tables)

    @property
    def count(self) -> int:
        return len(self.code) + len(self.math) + len(self.tables)


def extract(content: str, preserve_code: bool = True, preserve_math: bool = True) -> tuple[str, ContentShield]:
    """Shield protected elements.  Returns (shielded content, shield).

    Code is extracted only when the document appears to contain code, math
    only when it appears to contain formulas; tables are always extracted.
    """
    content_shield = ContentShield()
    shielded = content
    if preserve_code and has_code(content):
        shielded, content_shield.code = extract_code(shielded)
    if preserve_math and has_math(content):
        shielded, content_shield.math = extract_math(shielded)
    shielded, content_shield.tables = extract_tables(shielded)
    if not content_shield.is_empty:
        logger.debug(
            "Shielded %d code, %d math, %d table elements",
            len(content_shield.code),
            len(content_shield.math),
            len(content_shield.tables),
        )
    return shielded, content_shield


def restore(content: str, content_shield: ContentShield) -> str:
    """Undo extract(): tables, then math, then code."""
    content = restore_placeholders(content, content_shield.tables)
    content = restore_placeholders(content, content_shield.math)
    return restore_placeholders(content, content_shield.code)
