"""The shared pattern pass and keyword content-type detection.

When any hybrid step is enabled the orchestrator runs detect_page_furniture()
once before the steps: the analysis service proposes page-number, header
and footer regexes from a sample; if it fails or finds nothing, running
headers are found heuristically as short lines that recur at regular
intervals across the document.
"""

import logging
import re
from collections import defaultdict
from statistics import mean, pstdev

from scanclean.analysis.client import AnalysisClient
from scanclean.config import LINES_PER_PAGE, PATTERN_SAMPLE_PAGES
from scanclean.errors import CleaningCancelled, NonTransientServiceError
from scanclean.models import ContentType, ContentTypeFlags, DetectedPatterns
from scanclean.text import shield
from scanclean.text.sections import extract_pages

logger = logging.getLogger(__name__)

# Running header candidates: short, not structural
RUNNING_LINE_MIN_CHARS = 3
RUNNING_LINE_MAX_CHARS = 60
RUNNING_LINE_MIN_OCCURRENCES = 3

# Occurrences must spread over this fraction of the document
RUNNING_LINE_MIN_SPREAD = 0.30

# At least one occurrence per this many pages
RUNNING_LINE_MAX_PAGES_PER_HIT = 5

# Gap standard deviation / mean gap above which occurrences are irregular
RUNNING_LINE_MAX_GAP_VARIATION = 0.6

HEURISTIC_PATTERN_CONFIDENCE = 0.6

# Lines that are never running headers
STRUCTURAL_LINE_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,}|\d+|[ivxlcdm]+|[IVXLCDM]+|⟦\w+⟧)$")

# Headings, list items and chapter titles recur too but are content
CONTENT_LINE_PREFIXES = ("#", "-", "*")
CONTENT_TITLE_PREFIXES = ("chapter", "part ")

DIGITS_RE = re.compile(r"\d+")


def _is_candidate(line: str) -> bool:
    if not RUNNING_LINE_MIN_CHARS <= len(line) <= RUNNING_LINE_MAX_CHARS:
        return False
    if line.startswith(CONTENT_LINE_PREFIXES) or line.lower().startswith(CONTENT_TITLE_PREFIXES):
        return False
    return STRUCTURAL_LINE_RE.match(line) is None


def _line_key(line: str) -> str:
    """Running headers often carry a page number; compare with digits masked."""
    return DIGITS_RE.sub("0", line)


def _key_pattern(sample: str) -> str:
    return r"\d+".join(re.escape(piece) for piece in DIGITS_RE.split(sample))


def detect_running_lines(content: str) -> list[str]:
    """Regexes for short lines that repeat at regular intervals through the document."""
    lines = content.split("\n")
    if len(lines) < LINES_PER_PAGE * 2:
        return []
    occurrences: dict[str, list[int]] = defaultdict(list)
    samples: dict[str, str] = {}
    for number, line in enumerate(lines):
        stripped = line.strip()
        if not _is_candidate(stripped):
            continue
        key = _line_key(stripped)
        occurrences[key].append(number)
        samples.setdefault(key, stripped)

    min_hits = max(RUNNING_LINE_MIN_OCCURRENCES, len(lines) // (LINES_PER_PAGE * RUNNING_LINE_MAX_PAGES_PER_HIT))
    found = []
    for key, positions in occurrences.items():
        if len(positions) < min_hits:
            continue
        if (positions[-1] - positions[0]) / len(lines) < RUNNING_LINE_MIN_SPREAD:
            continue
        gaps = [b - a for a, b in zip(positions, positions[1:])]
        if pstdev(gaps) / mean(gaps) > RUNNING_LINE_MAX_GAP_VARIATION:
            continue
        found.append(_key_pattern(samples[key]))
        logger.debug("Running line %r: %d occurrences", samples[key], len(positions))
    return found


async def detect_page_furniture(content: str, client: AnalysisClient, patterns: DetectedPatterns) -> DetectedPatterns:
    """Fill the page-number/header/footer fields of patterns in place and return it."""
    detection = None
    try:
        detection = await client.detect_patterns(extract_pages(content, PATTERN_SAMPLE_PAGES))
    except (NonTransientServiceError, CleaningCancelled):
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Pattern detection failed, using heuristics: %s", exc)

    if detection is not None and (
        detection.page_number_patterns or detection.header_patterns or detection.footer_patterns
    ):
        patterns.page_number_patterns = list(detection.page_number_patterns)
        patterns.header_patterns = list(detection.header_patterns)
        patterns.footer_patterns = list(detection.footer_patterns)
        patterns.pattern_confidence = detection.confidence
        patterns.pattern_source = "ai"
        logger.info(
            "Service patterns: %d page-number, %d header, %d footer",
            len(patterns.page_number_patterns),
            len(patterns.header_patterns),
            len(patterns.footer_patterns),
        )
        return patterns

    patterns.header_patterns = detect_running_lines(content)
    patterns.pattern_confidence = HEURISTIC_PATTERN_CONFIDENCE
    patterns.pattern_source = "heuristic"
    logger.info("Heuristic patterns: %d running header lines", len(patterns.header_patterns))
    return patterns


# ── Content type ─────────────────────────────────────────────────────────────

ACADEMIC_RE = re.compile(r"\bet al\.|\bAbstract\b|\bibid\.|\(\s*[A-Z][a-z]+,\s*\d{4}\)|\bJournal of\b")
TECHNICAL_RE = re.compile(r"\b(?:Figure|Table|Algorithm|Listing)\s+\d+(?:\.\d+)?\b")
FICTION_RE = re.compile(r"[\"“][^\"”\n]{1,200}[,.!?][\"”]\s+(?:he|she|they|I)\s+(?:said|asked|whispered|replied)\b")
CHILDRENS_RE = re.compile(r"\bOnce upon a time\b|\bThe End\b")
DIALOGUE_LINE_RE = re.compile(r"^\s*(?:[\"“]|[A-Z][A-Za-z]+:\s)")


def detect_content_flags(content: str) -> ContentTypeFlags:
    """Keyword and layout guess at the genre, used when metadata extraction fails."""
    lines = [line for line in content.split("\n") if line.strip()]
    flags = ContentTypeFlags(has_code=shield.has_code(content), has_math=shield.has_math(content))
    if not lines:
        return flags
    short_lines = sum(1 for line in lines if len(line.split()) <= 8)
    dialogue_lines = sum(1 for line in lines if DIALOGUE_LINE_RE.match(line))
    flags.has_poetry = short_lines / len(lines) > 0.6 and len(lines) >= 20
    flags.has_dialogue = dialogue_lines / len(lines) > 0.3
    flags.is_academic = len(ACADEMIC_RE.findall(content)) >= 5
    flags.is_technical = flags.has_code or len(TECHNICAL_RE.findall(content)) >= 5
    flags.is_fiction = len(FICTION_RE.findall(content)) >= 3
    flags.is_childrens = bool(CHILDRENS_RE.search(content)) and mean(len(line.split()) for line in lines) < 12

    if flags.is_childrens:
        flags.primary = ContentType.CHILDRENS
    elif flags.is_academic:
        flags.primary = ContentType.ACADEMIC
    elif flags.is_technical:
        flags.primary = ContentType.TECHNICAL
    elif flags.has_poetry:
        flags.primary = ContentType.POETRY
    elif flags.has_dialogue and not flags.is_fiction:
        flags.primary = ContentType.DIALOGUE
    elif flags.is_fiction:
        flags.primary = ContentType.FICTION
    else:
        flags.primary = ContentType.PROSE
    flags.confidence = 0.5
    return flags
