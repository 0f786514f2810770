"""One handler per cleaning step.

Every handler takes the current content and the run context and returns
(new content, confidence or None).  StepHandlers.run() wraps that into a
StepResult with API usage and change counts.

Service calls go through _guarded(): a NonTransientServiceError or a
cancellation propagates, anything else is logged and replaced by the
"nothing detected" fallback, so a flaky service degrades to heuristics or
to unchanged content, never to a failed run.
"""

import logging
import re
from collections.abc import Awaitable, Callable

from scanclean.analysis.client import AnalysisClient, Completion
from scanclean.config import (
    AUXILIARY_SAMPLE_PAGES,
    BACK_MATTER_TAIL_LINES,
    BOUNDARY_SAMPLE_CHARS,
    CHAPTER_SAMPLE_PAGES,
    CHILDRENS_MAX_PARAGRAPH_WORDS,
    CITATION_SAMPLE_PAGES,
    FOOTNOTE_SAMPLE_PAGES,
    FRONT_MATTER_CHARS,
    INDEX_TAIL_LINES,
    LINES_PER_PAGE,
    METADATA_SAMPLE_PAGES,
    ChunkingDefaults,
)
from scanclean.defense.engine import BoundaryDefenseEngine, DefenseOutcome
from scanclean.errors import CleaningCancelled, NonTransientServiceError
from scanclean.models import BoundaryInfo, ContentType, DocumentMetadata, ExclusionZone, SectionType
from scanclean.pipeline.context import CleaningContext
from scanclean.pipeline.patterns import detect_content_flags
from scanclean.pipeline.providers import (
    BoundaryPreDetectionProvider,
    FinalReviewProvider,
    NoFinalReview,
    NoPreDetection,
    NoReconnaissance,
    ReconnaissanceProvider,
)
from scanclean.pipeline.results import StepResult
from scanclean.pipeline.steps import BOUNDARY_STEPS, CleaningStep
from scanclean.text import chunking, shield
from scanclean.text.chapters import ChapterMarkerStyle, Heading, apply_structure, detect_headings, strip_leading_metadata
from scanclean.text.citations import remove_citations, remove_footnote_markers
from scanclean.text.normalizer import clean_special_characters
from scanclean.text.sections import (
    count_changes,
    count_words,
    extract_head,
    extract_pages,
    extract_tail,
    line_count,
    remove_matching_lines,
    remove_multiple_sections,
    remove_section,
)

logger = logging.getLogger(__name__)

# Confidence reported for steps whose outcome does not come from a detector
PAGE_FURNITURE_CONFIDENCE = 0.85
CITATION_CONFIDENCE_DETECTED = 0.85
CITATION_CONFIDENCE_COMMON = 0.70
FOOTNOTE_CONFIDENCE_DETECTED = 0.85
FOOTNOTE_CONFIDENCE_HEURISTIC = 0.70
SPECIAL_CHARACTERS_CONFIDENCE_SHIELDED = 0.90
SPECIAL_CHARACTERS_CONFIDENCE = 0.95
STRUCTURE_CONFIDENCE = 0.85
STRUCTURE_CONFIDENCE_CHAPTERS = 0.88
STRUCTURE_CONFIDENCE_NO_CHAPTERS = 0.70
HEURISTIC_METADATA_CONFIDENCE = 0.5

# A rewritten chunk that lost more than this share of its words is discarded
REWRITE_MAX_WORD_LOSS = 0.10

# "ISBN 978-0-14-303943-3"
ISBN_RE = re.compile(r"ISBN(?:-1[03])?[:\s]*([0-9][0-9\- ]{8,16}[0-9Xx])")

# "by Jane Austen"
BYLINE_RE = re.compile(r"^\s*(?:by|BY|By)\s+(.+?)\s*$")


async def _guarded(what: str, call: Awaitable, fallback):
    """Await a service call; degrade to fallback on anything but fatal errors."""
    try:
        return await call
    except (NonTransientServiceError, CleaningCancelled):
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("%s failed, continuing without it: %s", what, exc)
        return fallback


def _heuristic_metadata(front_matter: str) -> DocumentMetadata:
    """Title from the first heading (or first short line), author from a byline, ISBN."""
    metadata = DocumentMetadata()
    lines = [line.strip() for line in front_matter.split("\n") if line.strip()]
    headings = [line.lstrip("#").strip() for line in lines if line.startswith("#")]
    if headings:
        metadata.title = headings[0]
    elif lines and len(lines[0]) <= 100:
        metadata.title = lines[0]
    for line in lines:
        match = BYLINE_RE.match(line)
        if match and len(match.group(1)) <= 80:
            metadata.author = match.group(1)
            break
    isbn = ISBN_RE.search(front_matter)
    if isbn:
        metadata.isbn = isbn.group(1).strip()
    return metadata


def _component_zones(lines: list[str], start: int, end: int, components, skip: set[str]) -> list[ExclusionZone]:
    """Exclusion zones for named sub-components ("dedication", "glossary") inside start..end.

    A component runs from its header line to the line before the next
    Markdown heading, clamped to the removal range.
    """
    zones = []
    for component in sorted(components):
        if component in skip:
            continue
        name = re.escape(component.replace("_", " "))
        header = re.compile(rf"^#{{0,3}}\s*{name}s?\s*[.:]?$", re.IGNORECASE)
        for number in range(start, end + 1):
            if not header.match(lines[number].strip()):
                continue
            zone_end = number
            for later in range(number + 1, end + 1):
                if lines[later].lstrip().startswith("#"):
                    break
                zone_end = later
            zones.append(ExclusionZone(number, zone_end, component))
            break
    return zones


class StepHandlers:
    """Step implementations sharing one client, one defense engine and the providers."""

    def __init__(
        self,
        client: AnalysisClient,
        engine: BoundaryDefenseEngine,
        reconnaissance: ReconnaissanceProvider | None = None,
        predetection: BoundaryPreDetectionProvider | None = None,
        final_review: FinalReviewProvider | None = None,
    ):
        self.client = client
        self.engine = engine
        self.reconnaissance = reconnaissance or NoReconnaissance()
        self.predetection = predetection or NoPreDetection()
        self.final_review = final_review or NoFinalReview()
        self._handlers: dict[CleaningStep, Callable] = {
            CleaningStep.RECONNAISSANCE: self.reconnaissance_step,
            CleaningStep.EXTRACT_METADATA: self.extract_metadata,
            CleaningStep.REMOVE_PAGE_NUMBERS: self.remove_page_numbers,
            CleaningStep.REMOVE_HEADERS_FOOTERS: self.remove_headers_footers,
            CleaningStep.REMOVE_FRONT_MATTER: self.remove_boundary_section,
            CleaningStep.REMOVE_TABLE_OF_CONTENTS: self.remove_boundary_section,
            CleaningStep.REMOVE_BACK_MATTER: self.remove_boundary_section,
            CleaningStep.REMOVE_INDEX: self.remove_boundary_section,
            CleaningStep.REMOVE_AUXILIARY_LISTS: self.remove_auxiliary_lists,
            CleaningStep.REMOVE_CITATIONS: self.remove_citations,
            CleaningStep.REMOVE_FOOTNOTES_ENDNOTES: self.remove_footnotes,
            CleaningStep.CLEAN_SPECIAL_CHARACTERS: self.clean_special_characters,
            CleaningStep.REFLOW_PARAGRAPHS: self.reflow_paragraphs,
            CleaningStep.OPTIMIZE_PARAGRAPH_LENGTH: self.optimize_paragraph_length,
            CleaningStep.ADD_STRUCTURE: self.add_structure,
            CleaningStep.FINAL_REVIEW: self.final_review_step,
        }

    async def run(self, step: CleaningStep, content: str, context: CleaningContext) -> StepResult:
        calls_before, tokens_before = self.client.usage.snapshot()
        new_content, confidence = await self._handlers[step](step, content, context)
        calls_after, tokens_after = self.client.usage.snapshot()
        return StepResult(
            content=new_content,
            api_calls=calls_after - calls_before,
            tokens=tokens_after - tokens_before,
            changes=count_changes(content, new_content),
            word_count=count_words(new_content),
            confidence=confidence,
        )

    # ── 1-2: reconnaissance and metadata ─────────────────────────────────────

    async def reconnaissance_step(self, step: CleaningStep, content: str, context: CleaningContext):
        context.hints = await _guarded("Reconnaissance", self.reconnaissance.survey(content), None)
        predetected = await _guarded("Boundary pre-detection", self.predetection.predetect(content), {})
        for section_type, boundary in predetected.items():
            context.cache_boundary(section_type, boundary)
        if context.hints is None:
            return content, None
        if context.configuration.content_type == ContentType.AUTO:
            context.content_type = ContentType(context.hints.content_type)
        return content, context.hints.confidence

    async def extract_metadata(self, step: CleaningStep, content: str, context: CleaningContext):
        front_matter = extract_head(content, FRONT_MATTER_CHARS)
        sample = extract_pages(content, METADATA_SAMPLE_PAGES)
        extraction = await _guarded("Metadata extraction", self.client.extract_metadata(front_matter, sample), None)

        flags = detect_content_flags(content)
        if extraction is not None:
            context.metadata = extraction.to_metadata()
            detected_type = extraction.content_type_enum
            confidence = extraction.confidence
        else:
            context.metadata = _heuristic_metadata(front_matter)
            detected_type = context.content_type if context.hints else flags.primary
            confidence = HEURISTIC_METADATA_CONFIDENCE

        configured = context.configuration.content_type
        context.content_type = detected_type if configured == ContentType.AUTO else configured
        flags.primary = context.content_type
        flags.confidence = confidence
        context.patterns.content_flags = flags
        logger.info("Metadata: '%s' by %s (%s)", context.metadata.title, context.metadata.author, context.content_type.value)
        return content, confidence

    # ── 3-4: page furniture ──────────────────────────────────────────────────

    async def remove_page_numbers(self, step: CleaningStep, content: str, context: CleaningContext):
        new_content, removed = remove_matching_lines(content, context.patterns.effective_page_number_patterns())
        if removed:
            context.record_removal("page_numbers", step, removed, source=context.patterns.pattern_source)
        return new_content, max(PAGE_FURNITURE_CONFIDENCE, context.patterns.pattern_confidence)

    async def remove_headers_footers(self, step: CleaningStep, content: str, context: CleaningContext):
        patterns = list(context.patterns.header_patterns) + list(context.patterns.footer_patterns)
        if not patterns:
            logger.info("No running headers or footers detected")
            return content, None
        new_content, removed = remove_matching_lines(content, patterns)
        if removed:
            context.record_removal("headers_footers", step, removed, source=context.patterns.pattern_source)
        return new_content, max(PAGE_FURNITURE_CONFIDENCE, context.patterns.pattern_confidence)

    # ── 5-8: boundary sections ───────────────────────────────────────────────

    async def _detect_candidate(self, section_type: SectionType, content: str, context: CleaningContext) -> BoundaryInfo | None:
        """A boundary valid for the current content: a fresh cached one, or re-detected."""
        if context.hint_says_absent(section_type):
            logger.info("Reconnaissance says no %s; heuristics only", section_type.label)
            return None
        cached = context.cached_boundary(section_type)
        if cached is not None and not cached.is_empty:
            return cached

        if section_type in (SectionType.FRONT_MATTER, SectionType.TABLE_OF_CONTENTS):
            sample, offset = extract_head(content, BOUNDARY_SAMPLE_CHARS), 0
        elif section_type == SectionType.BACK_MATTER:
            sample, offset = extract_tail(content, BACK_MATTER_TAIL_LINES)
        else:
            sample, offset = extract_tail(content, INDEX_TAIL_LINES)

        boundary = await _guarded(
            f"{section_type.label} detection",
            self.client.detect_boundary(sample, section_type),
            BoundaryInfo.not_found("Detection failed"),
        )
        if boundary.is_empty:
            return None
        return boundary.shifted(offset)

    def _exclusions(self, section_type: SectionType, content: str, start: int, end: int, context: CleaningContext):
        """Sub-regions inside start..end that the configuration wants kept."""
        configuration = context.configuration
        lines = content.split("\n")
        zones: list[ExclusionZone] = []
        nested = None
        if section_type == SectionType.FRONT_MATTER:
            keep_nested = (
                not configuration.is_enabled(CleaningStep.REMOVE_TABLE_OF_CONTENTS)
                or "table_of_contents" in configuration.disabled_front_matter_components
            )
            nested = (SectionType.TABLE_OF_CONTENTS, self.engine.heuristics.detect_toc(content))
            zones += _component_zones(lines, start, end, configuration.disabled_front_matter_components, {"table_of_contents"})
        elif section_type == SectionType.BACK_MATTER:
            keep_nested = (
                not configuration.is_enabled(CleaningStep.REMOVE_INDEX)
                or "index" in configuration.disabled_back_matter_components
            )
            nested = (SectionType.INDEX, self.engine.heuristics.detect_index(content))
            zones += _component_zones(lines, start, end, configuration.disabled_back_matter_components, {"index"})
        else:
            return zones, None

        nested_type, found = nested
        if found.detected and start <= found.boundary.start_line and found.boundary.end_line <= end:
            if keep_nested:
                zones.append(ExclusionZone(found.boundary.start_line, found.boundary.end_line, nested_type.value))
                return zones, None
            return zones, nested_type
        return zones, None

    def _record_detection(self, section_type: SectionType, outcome: DefenseOutcome, context: CleaningContext) -> None:
        patterns = context.patterns
        boundary = outcome.boundary
        if section_type == SectionType.FRONT_MATTER:
            patterns.front_matter_end_line, patterns.front_matter_confidence = boundary.end_line, outcome.confidence
        elif section_type == SectionType.TABLE_OF_CONTENTS:
            patterns.toc_start_line, patterns.toc_end_line = boundary.start_line, boundary.end_line
            patterns.toc_confidence = outcome.confidence
        elif section_type == SectionType.INDEX:
            patterns.index_start_line, patterns.index_confidence = boundary.start_line, outcome.confidence
        elif section_type == SectionType.BACK_MATTER:
            patterns.back_matter_start_line, patterns.back_matter_confidence = boundary.start_line, outcome.confidence

    async def remove_boundary_section(self, step: CleaningStep, content: str, context: CleaningContext):
        section_type = BOUNDARY_STEPS[step]
        candidate = await self._detect_candidate(section_type, content, context)
        outcome = self.engine.resolve(content, section_type, candidate)
        if not outcome.accepted:
            return content, None
        if outcome.source == "ai":
            context.cache_boundary(section_type, outcome.boundary)

        start, end = outcome.boundary.start_line, outcome.boundary.end_line
        zones, swallowed = self._exclusions(section_type, content, start, end, context)
        context.exclusion_zones.extend(zones)
        new_content = remove_section(content, start, end, zones)
        removed = line_count(content) - line_count(new_content)
        self._record_detection(section_type, outcome, context)
        context.record_removal(section_type.value, step, removed, start, end, outcome.source)
        if swallowed is not None:
            context.record_removal(swallowed.value, step, removed, start, end, f"within {section_type.value}")
        return new_content, outcome.confidence

    # ── 9-11: reference cleaning ─────────────────────────────────────────────

    async def remove_auxiliary_lists(self, step: CleaningStep, content: str, context: CleaningContext):
        section_type = SectionType.AUXILIARY_LISTS
        infos = []
        if not context.hint_says_absent(section_type):
            sample = extract_pages(content, AUXILIARY_SAMPLE_PAGES)
            infos = await _guarded("Auxiliary list detection", self.client.detect_auxiliary_lists(sample), [])
        outcomes = self.engine.resolve_regions(
            content, section_type, [info.to_boundary() for info in infos], kinds=[info.kind for info in infos]
        )
        if not outcomes:
            return content, None

        report = remove_multiple_sections(content, [(o.boundary.start_line, o.boundary.end_line) for o in outcomes])
        for outcome in outcomes:
            start, end = outcome.boundary.start_line, outcome.boundary.end_line
            context.record_removal(section_type.value, step, end - start + 1, start, end, outcome.kind or outcome.source)
        return report.content, round(sum(o.confidence for o in outcomes) / len(outcomes), 3)

    async def remove_citations(self, step: CleaningStep, content: str, context: CleaningContext):
        patterns = context.patterns
        if not patterns.has_citations:
            sample = extract_pages(content, CITATION_SAMPLE_PAGES)
            detection = await _guarded("Citation detection", self.client.detect_citations(sample), None)
            if detection is not None and detection.patterns:
                patterns.citation_style = detection.style
                patterns.citation_patterns = list(detection.patterns)
                patterns.citation_samples = list(detection.samples)
                patterns.citation_confidence = detection.confidence

        configuration = context.configuration
        shielded, content_shield = shield.extract(
            content, configuration.preserve_code_blocks, configuration.preserve_math_symbols
        )
        cleaned, removed = remove_citations(shielded, patterns.citation_patterns or None)
        logger.info("Removed %d citations (%s)", removed, patterns.citation_style or "common patterns")
        confidence = CITATION_CONFIDENCE_DETECTED if patterns.has_citations else CITATION_CONFIDENCE_COMMON
        return shield.restore(cleaned, content_shield), confidence

    async def remove_footnotes(self, step: CleaningStep, content: str, context: CleaningContext):
        section_type = SectionType.FOOTNOTES_ENDNOTES
        configuration = context.configuration
        shielded, content_shield = shield.extract(
            content, configuration.preserve_code_blocks, configuration.preserve_math_symbols
        )
        sample = extract_pages(shielded, FOOTNOTE_SAMPLE_PAGES)
        detection = await _guarded("Footnote detection", self.client.detect_footnotes(sample), None)

        patterns = context.patterns
        marker_pattern = None
        candidates: list[BoundaryInfo] = []
        if detection is not None:
            marker_pattern = detection.marker_pattern
            patterns.footnote_marker_style = detection.marker_style
            patterns.footnote_marker_pattern = detection.marker_pattern
            patterns.footnote_confidence = detection.confidence
            candidates = [
                BoundaryInfo(section.start_line, section.end_line, detection.confidence, "notes section")
                for section in detection.sections
            ]

        cleaned, markers = remove_footnote_markers(shielded, marker_pattern)
        logger.info("Removed %d footnote markers", markers)

        outcomes = self.engine.resolve_regions(cleaned, section_type, candidates)
        if outcomes:
            report = remove_multiple_sections(cleaned, [(o.boundary.start_line, o.boundary.end_line) for o in outcomes])
            cleaned = report.content
            patterns.footnote_sections = [(o.boundary.start_line, o.boundary.end_line) for o in outcomes]
            for outcome in outcomes:
                start, end = outcome.boundary.start_line, outcome.boundary.end_line
                context.record_removal(section_type.value, step, end - start + 1, start, end, outcome.source)

        ai_used = detection is not None and any(o.source == "ai" for o in outcomes)
        confidence = FOOTNOTE_CONFIDENCE_DETECTED if ai_used else FOOTNOTE_CONFIDENCE_HEURISTIC
        return shield.restore(cleaned, content_shield), confidence

    # ── 12: special characters ───────────────────────────────────────────────

    async def clean_special_characters(self, step: CleaningStep, content: str, context: CleaningContext):
        configuration = context.configuration
        shielded, content_shield = shield.extract(
            content, configuration.preserve_code_blocks, configuration.preserve_math_symbols
        )
        cleaned = clean_special_characters(shielded, configuration.special_characters_to_remove)
        confidence = SPECIAL_CHARACTERS_CONFIDENCE_SHIELDED if not content_shield.is_empty else SPECIAL_CHARACTERS_CONFIDENCE
        return shield.restore(cleaned, content_shield), confidence

    # ── 13-14: chunked rewrites ──────────────────────────────────────────────

    async def _rewrite_chunks(
        self,
        step: CleaningStep,
        content: str,
        context: CleaningContext,
        rewrite: Callable[[str, chunking.Chunk], Awaitable[Completion]],
        needs_rewrite: Callable[[str], bool] | None = None,
    ):
        """Rewrite content chunk by chunk; a chunk whose rewrite fails keeps its text."""
        chunks = chunking.chunk(content, ChunkingDefaults.TARGET_WORDS, ChunkingDefaults.OVERLAP_WORDS)
        outputs: list[str] = []
        successes = 0
        for current in chunks:
            context.check_cancelled()
            context.progress(current.index / len(chunks), f"{step.label}: chunk {current.index + 1}/{len(chunks)}")
            if needs_rewrite is not None and not needs_rewrite(current.text):
                outputs.append(current.text)
                successes += 1
                continue

            shielded, content_shield = shield.extract(current.text, context.configuration.preserve_code_blocks, False)
            completion = await _guarded(f"{step.label} chunk {current.index + 1}", rewrite(shielded, current), None)
            if completion is None or not completion.text.strip():
                outputs.append(current.text)
                continue
            missing = [
                token
                for store in (content_shield.code, content_shield.math, content_shield.tables)
                for token in store
                if token not in completion.text
            ]
            if missing:
                logger.warning("Chunk %d rewrite dropped %d protected elements; keeping original", current.index + 1, len(missing))
                outputs.append(current.text)
                continue
            restored = shield.restore(completion.text.strip("\n"), content_shield)
            if count_words(restored) < current.word_count * (1 - REWRITE_MAX_WORD_LOSS):
                logger.warning(
                    "Chunk %d rewrite lost words (%d -> %d); keeping original",
                    current.index + 1,
                    current.word_count,
                    count_words(restored),
                )
                outputs.append(current.text)
                continue
            outputs.append(restored)
            successes += 1

        context.progress(1.0, f"{step.label}: done")
        success_rate = successes / len(chunks) if chunks else 1.0
        logger.info("%s: %d/%d chunks rewritten", step.label, successes, len(chunks))
        return chunking.merge(outputs), round(min(0.90, 0.75 + success_rate * 0.15), 3)

    async def reflow_paragraphs(self, step: CleaningStep, content: str, context: CleaningContext):
        content_type = context.content_type

        def rewrite(text: str, current: chunking.Chunk) -> Awaitable[Completion]:
            return self.client.reflow_paragraphs(text, current.previous_overlap, content_type)

        return await self._rewrite_chunks(step, content, context, rewrite)

    async def optimize_paragraph_length(self, step: CleaningStep, content: str, context: CleaningContext):
        content_type = context.content_type
        max_words = context.configuration.max_paragraph_words
        if content_type == ContentType.CHILDRENS:
            max_words = min(max_words, CHILDRENS_MAX_PARAGRAPH_WORDS)

        def rewrite(text: str, current: chunking.Chunk) -> Awaitable[Completion]:
            return self.client.optimize_paragraphs(text, max_words, content_type)

        def has_long_paragraph(text: str) -> bool:
            return any(count_words(paragraph) > max_words for paragraph in text.split(chunking.PARAGRAPH_SEPARATOR))

        return await self._rewrite_chunks(step, content, context, rewrite, has_long_paragraph)

    # ── 15-16: assembly and review ───────────────────────────────────────────

    async def _chapter_headings(self, body: str) -> list[Heading]:
        """Service headings checked against the text, plus heuristic ones past the sample."""
        lines = body.split("\n")
        sample_lines = CHAPTER_SAMPLE_PAGES * LINES_PER_PAGE
        detection = await _guarded(
            "Chapter detection", self.client.detect_chapters(extract_pages(body, CHAPTER_SAMPLE_PAGES)), None
        )
        verified: list[Heading] = []
        if detection is not None:
            for entry in detection.chapters:
                if not 0 <= entry.line < len(lines):
                    continue
                line = lines[entry.line].strip()
                if line.startswith("#") or (line and entry.title.strip().lower() in line.lower()):
                    verified.append(Heading(entry.line, entry.title.strip(), entry.is_part))
                else:
                    logger.debug("Discarding chapter at line %d: %r does not match", entry.line, entry.title)

        heuristic = detect_headings(body)
        if not verified:
            return heuristic
        return verified + [heading for heading in heuristic if heading.line >= sample_lines]

    async def add_structure(self, step: CleaningStep, content: str, context: CleaningContext):
        configuration = context.configuration
        body = strip_leading_metadata(content)
        headings: list[Heading] = []
        marker_style = ChapterMarkerStyle.NONE
        if configuration.enable_chapter_segmentation:
            headings = await self._chapter_headings(body)
            marker_style = configuration.chapter_marker_style
            context.patterns.chapter_start_lines = [h.line for h in headings if not h.is_part]
            context.patterns.chapter_titles = [h.title for h in headings if not h.is_part]
            context.patterns.part_start_lines = [h.line for h in headings if h.is_part]
            context.patterns.part_titles = [h.title for h in headings if h.is_part]

        structured = apply_structure(
            body,
            context.metadata,
            headings,
            marker_style=marker_style,
            end_style=configuration.end_marker_style,
            metadata_format=configuration.metadata_format,
        )
        if not configuration.enable_chapter_segmentation:
            confidence = STRUCTURE_CONFIDENCE
        elif headings:
            confidence = STRUCTURE_CONFIDENCE_CHAPTERS
        else:
            confidence = STRUCTURE_CONFIDENCE_NO_CHAPTERS
        return structured, confidence

    async def final_review_step(self, step: CleaningStep, content: str, context: CleaningContext):
        context.review = await _guarded("Final review", self.final_review.review(content), None)
        if context.review is None:
            return content, None
        return content, context.review.quality_score
