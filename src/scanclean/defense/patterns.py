"""Regex catalogues shared by content verification and heuristic detection.

Weighted entries are (compiled pattern, weight, label): the weight is the
confidence a heuristic assigns when that pattern alone identifies a region.
Header patterns match a whole stripped line.
"""

import re


def _md(alternatives: str, weight: float, label: str, flags: int = re.IGNORECASE):
    """Markdown header ("# NOTES", "### Notes:") with the given alternatives."""
    return re.compile(rf"^#{{1,3}}\s*(?:{alternatives})\s*[.:]?\s*$", flags), weight, label


def _plain(alternatives: str, weight: float, label: str, flags: int = 0):
    """Bare header line ("NOTES").  Case-sensitive unless flags say otherwise."""
    return re.compile(rf"^(?:{alternatives})\s*[.:]?$", flags), weight, label


# ── Back matter ──────────────────────────────────────────────────────────────

BACK_MATTER_HEADERS = (
    _md(r"NOTES|ENDNOTES|END NOTES", 1.0, "notes"),
    _md(r"APPENDIX(?:\s+[A-Z0-9]+)?(?:\s*[:.\-—]\s*.+)?|APPENDICES", 0.9, "appendix"),
    _md(r"GLOSSARY", 0.95, "glossary"),
    _md(r"BIBLIOGRAPHY|SELECTED BIBLIOGRAPHY", 0.95, "bibliography"),
    _md(r"REFERENCES|SOURCES", 0.9, "references"),
    _md(r"WORKS CITED", 0.95, "works cited"),
    _md(r"ACKNOWLEDGE?MENTS", 0.8, "acknowledgments"),
    _md(r"ABOUT THE AUTHORS?", 0.85, "about the author"),
    _md(r"COLOPHON", 0.9, "colophon"),
    _md(r"AFTERWORD", 0.7, "afterword"),
    _md(r"NOTAS|BIBLIOGRAF[ÍI]A|GLOSARIO|AP[ÉE]NDICE|ANNEXES?|GLOSSAIRE|BIBLIOGRAPHIE|ANHANG|GLOSSAR|LITERATURVERZEICHNIS", 0.9, "notes (intl)"),
    _plain(r"NOTES|ENDNOTES", 0.9, "notes"),
    _plain(r"APPENDIX(?: [A-Z])?", 0.85, "appendix"),
    _plain(r"GLOSSARY|BIBLIOGRAPHY", 0.9, "glossary/bibliography"),
    _plain(r"REFERENCES", 0.85, "references"),
    _plain(r"WORKS CITED", 0.9, "works cited"),
    _plain(r"ACKNOWLEDGE?MENTS", 0.75, "acknowledgments"),
    _plain(r"ABOUT THE AUTHORS?", 0.8, "about the author"),
)

# ── Index ────────────────────────────────────────────────────────────────────

INDEX_HEADERS = (
    _md(r"(?:SUBJECT |NAME |GENERAL |AUTHOR |COMBINED )?INDEX", 1.0, "index"),
    _plain(r"(?:SUBJECT |NAME |GENERAL )?INDEX", 0.9, "index"),
    _md(r"[ÍI]NDICE(?: ALFAB[ÉE]TICO| ONOM[ÁA]STICO)?|REGISTER|SACHREGISTER|NAMENSREGISTER|INDEX ALPHAB[ÉE]TIQUE", 0.9, "index (intl)"),
    _plain(r"[ÍI]NDICE|REGISTER|SACHREGISTER", 0.9, "index (intl)"),
)

# "Electricity, 12, 45-47" -- term, then page references
INDEX_ENTRY_RE = re.compile(r"^\s*[A-Za-z][A-Za-z\s,'\-()]*,\s*\d+(?:[–\-]\d+)?(?:,\s*\d+(?:[–\-]\d+)?)*\s*$")

# Single-letter section divider in an index: "A", "## B"
INDEX_LETTER_DIVIDER_RE = re.compile(r"^\s*#{0,3}\s*[A-Z]\s*$")

# ── Front matter ─────────────────────────────────────────────────────────────

FRONT_MATTER_INDICATORS = (
    (re.compile(r"©\s*\d{4}"), 1.0, "copyright symbol"),
    (re.compile(r"Copyright\s*©?\s*\d{4}", re.IGNORECASE), 1.0, "copyright"),
    (re.compile(r"All rights reserved", re.IGNORECASE), 0.9, "all rights reserved"),
    (re.compile(r"ISBN\s*[-:\s]?\s*\d"), 1.0, "ISBN"),
    (re.compile(r"Library of Congress", re.IGNORECASE), 0.95, "Library of Congress"),
    (re.compile(r"First published", re.IGNORECASE), 0.85, "first published"),
    (re.compile(r"First edition", re.IGNORECASE), 0.85, "first edition"),
    (re.compile(r"Published by", re.IGNORECASE), 0.8, "published by"),
    (re.compile(r"Printed in", re.IGNORECASE), 0.75, "printed in"),
)

# Weaker preliminary-page markers: dedication, preface, foreword
FRONT_MATTER_SECTION_RE = re.compile(
    r"^#{0,3}\s*(?:DEDICATION|PREFACE|FOREWORD|EPIGRAPH|TABLE OF CONTENTS|CONTENTS|ALSO BY .+)\s*$",
    re.IGNORECASE,
)

# Where the main body begins
MAIN_CONTENT_START = (
    (re.compile(r"^#{1,2}\s*chapter\s+(?:\d+|one)\b", re.IGNORECASE), 1.0, "chapter 1"),
    (re.compile(r"^#{1,2}\s*part\s+(?:[IVXLC]+|one|1)\b", re.IGNORECASE), 0.9, "part I"),
    (re.compile(r"^#{1,2}\s*1\.\s+[A-Z]"), 0.8, "numbered heading"),
    (re.compile(r"^#{1,2}\s*prologue\s*$", re.IGNORECASE), 0.9, "prologue"),
    (re.compile(r"^(?:CHAPTER (?:1|ONE|I)|PROLOGUE)\s*$"), 0.85, "chapter 1 (plain)"),
)

# ── Table of contents ────────────────────────────────────────────────────────

TOC_HEADERS = (
    _md(r"TABLE OF CONTENTS|CONTENTS", 1.0, "contents"),
    _plain(r"TABLE OF CONTENTS|CONTENTS", 0.9, "contents", re.IGNORECASE),
    _md(r"TABLA DE CONTENIDOS?|CONTENIDOS?|[ÍI]NDICE GENERAL|TABLE DES MATI[ÈE]RES|SOMMAIRE|INHALTSVERZEICHNIS|INHALT", 0.9, "contents (intl)"),
    _plain(r"TABLA DE CONTENIDOS?|TABLE DES MATI[ÈE]RES|SOMMAIRE|INHALTSVERZEICHNIS", 0.9, "contents (intl)", re.IGNORECASE),
)

# "Chapter One ........ 12" or "The Storm      45"
TOC_ENTRY_RE = re.compile(r"^.+\s{2,}\.{2,}\s*\d+\s*$|^.+\s{4,}\d+\s*$|^.+\.{3,}\s*\d+\s*$")

# "Chapter 3 The Storm 45", "Part II 101", "3. The Storm 45"
CHAPTER_LISTING_RE = re.compile(r"^.*(?:Chapter|CHAPTER|Part|PART|\d+\.)\s+\S+.*\s\d+\s*$")

# Unnumbered OCR listings: "Chapter 3: The Storm", "- [The Storm](#the-storm)"
TOC_TITLE_LINE_RE = re.compile(r"^\s*(?:[-*]\s*)?(?:\[.+\]\(#.*\)|(?:Chapter|CHAPTER|Part|PART)\s+\w+.*)$")

# ── Auxiliary lists ──────────────────────────────────────────────────────────

_LIST_KINDS = r"FIGURES|TABLES|ILLUSTRATIONS|PLATES|MAPS|CHARTS|GRAPHS|ABBREVIATIONS|SYMBOLS|ACRONYMS|CONTRIBUTORS|APPENDICES"

AUXILIARY_HEADERS = (
    _md(rf"LIST OF (?:{_LIST_KINDS})", 1.0, "list of"),
    _md(r"FIGURES|TABLES|ILLUSTRATIONS|PLATES|MAPS", 0.85, "bare list"),
    _md(r"ABBREVIATIONS|ACRONYMS|SYMBOLS", 0.9, "abbreviations"),
    _plain(rf"LIST OF (?:{_LIST_KINDS})", 0.9, "list of", re.IGNORECASE),
    _plain(r"FIGURES|TABLES|SYMBOLS", 0.8, "bare list"),
    _plain(r"ABBREVIATIONS|ACRONYMS", 0.85, "abbreviations"),
    _md(
        r"LISTA DE (?:FIGURAS|TABLAS|ABREVIATURAS)|LISTE DES (?:FIGURES|TABLEAUX)|ABR[ÉE]VIATIONS"
        r"|ABBILDUNGSVERZEICHNIS|TABELLENVERZEICHNIS|ABK[ÜU]RZUNGSVERZEICHNIS",
        0.9,
        "list (intl)",
    ),
)

AUXILIARY_ENTRIES = (
    (re.compile(r"^\s*(?:Figure|Fig\.|FIGURE|FIG\.)\s*\d+", re.IGNORECASE), 0.9, "figure entry"),
    (re.compile(r"^\s*(?:Table|Tab\.|TABLE|TAB\.)\s*\d+", re.IGNORECASE), 0.9, "table entry"),
    (re.compile(r"^\s*(?:Illustration|Plate|Map|Chart|Graph)\s*\d+", re.IGNORECASE), 0.85, "illustration entry"),
    (re.compile(r"^\s*[A-Z]{2,}\s*[-–:]\s*[A-Z]"), 0.8, "abbreviation entry"),
    (re.compile(r"^.+\.{3,}\s*\d+\s*$"), 0.7, "dotted leader entry"),
)

# (keyword in upper-cased header, list kind)
AUXILIARY_KINDS = (
    (("FIGURE", "FIGURA", "ABBILDUNG"), "List of Figures"),
    (("TABLE", "TABLA", "TABLEAU", "TABELLE"), "List of Tables"),
    (("ILLUSTRATION", "PLATE"), "List of Illustrations"),
    (("MAP",), "List of Maps"),
    (("CHART", "GRAPH"), "List of Charts"),
    (("ABBREVIA", "ACRONYM", "ABRÉVIA", "ABKÜRZ"), "List of Abbreviations"),
    (("SYMBOL",), "List of Symbols"),
)


def auxiliary_kind(header: str) -> str:
    upper = header.upper()
    for keywords, kind in AUXILIARY_KINDS:
        if any(keyword in upper for keyword in keywords):
            return kind
    return "Auxiliary List"


# ── Notes sections ───────────────────────────────────────────────────────────

FOOTNOTE_HEADERS = (
    _md(r"NOTES|ENDNOTES|END NOTES|FOOTNOTES", 1.0, "notes"),
    _md(r"CHAPTER\s+\w+\s+NOTES|NOTES\s+(?:TO|FOR)\s+CHAPTER\s+\w+|NOTES\s+AND\s+(?:REFERENCES|SOURCES)", 0.95, "chapter notes"),
    _plain(r"NOTES|ENDNOTES|FOOTNOTES", 0.9, "notes"),
    _md(r"NOTAS|NOTAS FINALES|ANMERKUNGEN|ENDNOTEN|FUSSNOTEN|NOTES DE FIN", 0.9, "notes (intl)"),
)

FOOTNOTE_ENTRIES = (
    re.compile(r"^\s*\d{1,3}[.:)]\s+\S"),
    re.compile(r"^\s*[\[(]\d{1,3}[\])]\s+"),
    re.compile(r"^\s*\[\^\d+\]:"),
    re.compile(r"^\s*(?:See|Cf\.|Compare|Ibid|Op\.\s*cit)", re.IGNORECASE),
)

# ── Main-body evidence ───────────────────────────────────────────────────────

# Chapter headings; a region containing one is probably main body
CHAPTER_INDICATORS = (
    re.compile(r"^#{1,2}\s*chapter\s+(?:\d|[IVXLC]+\b)", re.IGNORECASE),
    re.compile(r"^#{1,2}\s*chapter\s+(?:ONE|TWO|THREE|FOUR|FIVE|SIX|SEVEN|EIGHT|NINE|TEN)\b", re.IGNORECASE),
    re.compile(r"^#{1,2}\s*\d+\.\s+[A-Z]"),
    re.compile(r"^#{1,2}\s*part\s+[IVXLC]+\b", re.IGNORECASE),
    re.compile(r"^CHAPTER\s+(?:\d+|ONE|TWO|THREE|FOUR|FIVE|SIX|SEVEN|EIGHT|NINE|TEN)\s*$"),
)

# Long sentence of running prose
NARRATIVE_LINE_MIN_CHARS = 100


# ── Helpers ──────────────────────────────────────────────────────────────────


def match_weighted(line: str, catalogue) -> tuple[float, str] | None:
    """Best (weight, label) of the catalogue entries matching the stripped line."""
    stripped = line.strip()
    best = None
    for pattern, weight, label in catalogue:
        if pattern.search(stripped) and (best is None or weight > best[0]):
            best = (weight, label)
    return best


def is_chapter_indicator(line: str) -> bool:
    stripped = line.strip()
    return any(pattern.match(stripped) for pattern in CHAPTER_INDICATORS)


def is_toc_entry(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    return bool(TOC_ENTRY_RE.match(stripped) or CHAPTER_LISTING_RE.match(stripped))


def is_auxiliary_entry(line: str) -> bool:
    stripped = line.strip()
    return any(pattern.match(stripped) for pattern, _, _ in AUXILIARY_ENTRIES)


def is_footnote_entry(line: str) -> bool:
    return any(pattern.match(line) for pattern in FOOTNOTE_ENTRIES)
