"""Optional collaborators injected into the pipeline.

Reconnaissance, boundary pre-detection and final review are capabilities,
not core behaviour.  The defaults do nothing; the LLM-backed versions ask
the analysis service.  Either way a provider never changes content.
"""

import logging
from typing import Protocol

from scanclean.analysis import prompts
from scanclean.analysis.client import AnalysisClient
from scanclean.analysis.schemas import FinalReview, ReconnaissanceHints
from scanclean.config import BOUNDARY_SAMPLE_CHARS, FINAL_REVIEW_SAMPLE_CHARS, RECONNAISSANCE_SAMPLE_CHARS
from scanclean.models import BoundaryInfo, SectionType
from scanclean.text.sections import extract_head, head_line_limit

logger = logging.getLogger(__name__)


class ReconnaissanceProvider(Protocol):
    async def survey(self, content: str) -> ReconnaissanceHints | None: ...


class BoundaryPreDetectionProvider(Protocol):
    async def predetect(self, content: str) -> dict[SectionType, BoundaryInfo]: ...


class FinalReviewProvider(Protocol):
    async def review(self, content: str) -> FinalReview | None: ...


# ── No-op defaults ───────────────────────────────────────────────────────────


class NoReconnaissance:
    async def survey(self, content: str) -> ReconnaissanceHints | None:
        return None


class NoPreDetection:
    async def predetect(self, content: str) -> dict[SectionType, BoundaryInfo]:
        return {}


class NoFinalReview:
    async def review(self, content: str) -> FinalReview | None:
        return None


# ── LLM-backed ───────────────────────────────────────────────────────────────


def _sample(content: str, max_chars: int) -> str:
    """Head and tail of a long document, so both ends are visible."""
    if len(content) <= max_chars:
        return content
    half = max_chars // 2
    return content[:half] + "\n\n[...]\n\n" + content[-half:]


class LLMReconnaissance:
    """Presence hints for every removable region, plus a genre guess."""

    def __init__(self, client: AnalysisClient):
        self.client = client

    async def survey(self, content: str) -> ReconnaissanceHints | None:
        hints = await self.client.parse(
            prompts.RECONNAISSANCE_SYSTEM_PROMPT, _sample(content, RECONNAISSANCE_SAMPLE_CHARS), ReconnaissanceHints
        )
        if hints is not None:
            logger.info(
                "Reconnaissance: front=%s toc=%s index=%s back=%s type=%s (%.2f)",
                hints.has_front_matter,
                hints.has_table_of_contents,
                hints.has_index,
                hints.has_back_matter,
                hints.content_type,
                hints.confidence,
            )
        return hints


class LLMPreDetection:
    """Front matter and TOC boundaries computed on the untouched document."""

    def __init__(self, client: AnalysisClient):
        self.client = client

    async def predetect(self, content: str) -> dict[SectionType, BoundaryInfo]:
        sample = extract_head(content, BOUNDARY_SAMPLE_CHARS)
        limit = head_line_limit(content, BOUNDARY_SAMPLE_CHARS)
        found = {}
        for section_type in (SectionType.FRONT_MATTER, SectionType.TABLE_OF_CONTENTS):
            boundary = await self.client.detect_boundary(sample, section_type)
            if boundary.end_line is not None and boundary.end_line >= limit:
                logger.warning("Pre-detected %s ends past the sample; ignored", section_type.label)
                continue
            found[section_type] = boundary
        return found


class LLMFinalReview:
    def __init__(self, client: AnalysisClient):
        self.client = client

    async def review(self, content: str) -> FinalReview | None:
        review = await self.client.parse(
            prompts.FINAL_REVIEW_SYSTEM_PROMPT, _sample(content, FINAL_REVIEW_SAMPLE_CHARS), FinalReview
        )
        if review is not None:
            logger.info("Final review: quality %.2f, %d issues", review.quality_score, len(review.issues))
        return review
