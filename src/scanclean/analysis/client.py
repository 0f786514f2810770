"""Analysis-service clients.

AnalysisClient is the interface the pipeline talks to.  Two implementations:

  OpenAIAnalysisClient   OpenAI or Azure OpenAI (AsyncOpenAI), pydantic
                         structured outputs via chat.completions.parse
  OfflineAnalysisClient  detects nothing and rewrites nothing; with it only
                         the heuristics act (scanclean --no-ai)

Timeouts, rate limits and 5xx responses are retried by the SDK (max_retries)
and surface as TransientServiceError once retries are exhausted;
authentication and malformed-request errors surface as
NonTransientServiceError.  Callers decide how to degrade.
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol, TypeVar

import openai
import tiktoken
from openai import AsyncOpenAI
from pydantic import BaseModel

from scanclean.analysis import prompts
from scanclean.analysis.schemas import (
    AuxiliaryListInfo,
    AuxiliaryListsResponse,
    BoundaryResponse,
    ChapterDetection,
    CitationDetection,
    FootnoteDetection,
    MetadataExtraction,
    PatternDetection,
)
from scanclean.config import ServiceSettings
from scanclean.errors import NonTransientServiceError, TransientServiceError
from scanclean.models import BoundaryInfo, ContentType, SectionType

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

# Encoding used when tiktoken does not know the model (Azure deployment names)
FALLBACK_ENCODING = "o200k_base"

# Output budget for rewrite calls, relative to the input's token count
REWRITE_TOKEN_FACTOR = 1.5
REWRITE_TOKEN_MARGIN = 256
MIN_COMPLETION_TOKENS = 1024


@dataclass(frozen=True)
class Completion:
    text: str
    tokens_used: int


@dataclass
class UsageCounter:
    """Running totals for one client; steps diff it to report their own usage."""

    api_calls: int = 0
    tokens: int = 0

    def snapshot(self) -> tuple[int, int]:
        return self.api_calls, self.tokens


class AnalysisClient(Protocol):
    """What the pipeline needs from an analysis service."""

    usage: UsageCounter

    async def complete(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 4096) -> Completion: ...

    async def parse(self, system_prompt: str, prompt: str, response_format: type[ResponseT]) -> ResponseT | None: ...

    async def detect_boundary(self, content: str, section_kind: SectionType) -> BoundaryInfo: ...

    async def detect_auxiliary_lists(self, content: str) -> list[AuxiliaryListInfo]: ...

    async def detect_citations(self, content: str) -> CitationDetection | None: ...

    async def detect_footnotes(self, content: str) -> FootnoteDetection | None: ...

    async def detect_chapters(self, content: str) -> ChapterDetection | None: ...

    async def extract_metadata(self, front_matter: str, sample_content: str | None = None) -> MetadataExtraction | None: ...

    async def detect_patterns(self, sample: str) -> PatternDetection | None: ...

    async def reflow_paragraphs(self, chunk: str, previous_context: str, content_type: ContentType) -> Completion: ...

    async def optimize_paragraphs(self, chunk: str, max_words: int, content_type: ContentType) -> Completion: ...

    async def validate_credentials(self) -> bool: ...


def count_tokens(text: str, model: str = "gpt-4o") -> int:
    """Token count with the model's tiktoken encoding (o200k_base if unknown)."""
    try:
        encoding = tiktoken.encoding_for_model(model)
    except KeyError:
        encoding = tiktoken.get_encoding(FALLBACK_ENCODING)
    return len(encoding.encode(text, disallowed_special=()))


def _content_type_name(content_type: ContentType) -> str:
    return "prose" if content_type == ContentType.AUTO else content_type.value


# ── OpenAI / Azure OpenAI ────────────────────────────────────────────────────


class OpenAIAnalysisClient:
    """AnalysisClient backed by the OpenAI (or Azure OpenAI v1) API."""

    def __init__(self, settings: ServiceSettings):
        self.settings = settings
        self.model = settings.model
        self.usage = UsageCounter()
        if settings.is_azure:
            logger.info("Connecting to Azure OpenAI at %s  (deployment=%s)", settings.base_url, settings.model)
        else:
            logger.info("Connecting to OpenAI (model=%s)", settings.model)
        self._client = AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            max_retries=settings.max_retries,
            timeout=settings.timeout,
        )

    @classmethod
    def from_env(cls) -> "OpenAIAnalysisClient | None":
        settings = ServiceSettings.from_env()
        return cls(settings) if settings else None

    def _record(self, usage, fallback_text: str) -> int:
        tokens = usage.total_tokens if usage is not None else count_tokens(fallback_text, self.model)
        self.usage.api_calls += 1
        self.usage.tokens += tokens
        return tokens

    async def _call(self, method, **kwargs):
        """Invoke an SDK method, translating SDK errors into service errors."""
        t0 = time.time()
        try:
            response = await method(model=self.model, **kwargs)
        except (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.BadRequestError,
            openai.NotFoundError,
            openai.UnprocessableEntityError,
        ) as exc:
            logger.error("Analysis service rejected the request: %s", exc)
            raise NonTransientServiceError(str(exc)) from exc
        except (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError) as exc:
            logger.error("Analysis service unavailable after %d retries: %s", self.settings.max_retries, exc)
            raise TransientServiceError(str(exc)) from exc
        logger.debug("Analysis service responded in %.1fs", time.time() - t0)
        return response

    async def complete(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 4096) -> Completion:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        response = await self._call(self._client.chat.completions.create, messages=messages, max_completion_tokens=max_tokens)
        text = response.choices[0].message.content or ""
        tokens = self._record(response.usage, (system_prompt or "") + prompt + text)
        return Completion(text=text, tokens_used=tokens)

    async def parse(self, system_prompt: str, prompt: str, response_format: type[ResponseT]) -> ResponseT | None:
        """Structured call; None when the model refuses or returns nothing parseable."""
        completion = await self._call(
            self._client.chat.completions.parse,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            response_format=response_format,
        )
        self._record(completion.usage, system_prompt + prompt)
        parsed = completion.choices[0].message.parsed
        if parsed is None:
            logger.warning("Analysis service returned a refusal or empty %s", response_format.__name__)
        return parsed

    # ── Detection ────────────────────────────────────────────────────────────

    async def detect_boundary(self, content: str, section_kind: SectionType) -> BoundaryInfo:
        description = prompts.SECTION_DESCRIPTIONS.get(section_kind.value, section_kind.label)
        result = await self.parse(
            prompts.BOUNDARY_SYSTEM_PROMPT.format(description=description),
            prompts.number_lines(content),
            BoundaryResponse,
        )
        if result is None:
            return BoundaryInfo.not_found("No response")
        return result.to_boundary()

    async def detect_auxiliary_lists(self, content: str) -> list[AuxiliaryListInfo]:
        result = await self.parse(prompts.AUXILIARY_SYSTEM_PROMPT, prompts.number_lines(content), AuxiliaryListsResponse)
        return list(result.lists) if result else []

    async def detect_citations(self, content: str) -> CitationDetection | None:
        return await self.parse(prompts.CITATION_SYSTEM_PROMPT, content, CitationDetection)

    async def detect_footnotes(self, content: str) -> FootnoteDetection | None:
        return await self.parse(prompts.FOOTNOTE_SYSTEM_PROMPT, prompts.number_lines(content), FootnoteDetection)

    async def detect_chapters(self, content: str) -> ChapterDetection | None:
        return await self.parse(prompts.CHAPTER_SYSTEM_PROMPT, prompts.number_lines(content), ChapterDetection)

    async def extract_metadata(self, front_matter: str, sample_content: str | None = None) -> MetadataExtraction | None:
        prompt = f"OPENING PAGES:\n{front_matter}"
        if sample_content:
            prompt += f"\n\nLATER SAMPLE (for genre only):\n{sample_content}"
        return await self.parse(prompts.METADATA_SYSTEM_PROMPT, prompt, MetadataExtraction)

    async def detect_patterns(self, sample: str) -> PatternDetection | None:
        return await self.parse(prompts.PATTERN_SYSTEM_PROMPT, sample, PatternDetection)

    # ── Rewrites ─────────────────────────────────────────────────────────────

    def _rewrite_budget(self, chunk: str) -> int:
        return max(MIN_COMPLETION_TOKENS, int(count_tokens(chunk, self.model) * REWRITE_TOKEN_FACTOR) + REWRITE_TOKEN_MARGIN)

    async def reflow_paragraphs(self, chunk: str, previous_context: str, content_type: ContentType) -> Completion:
        system = prompts.REFLOW_SYSTEM_PROMPT.format(content_type=_content_type_name(content_type))
        if previous_context:
            prompt = prompts.REFLOW_CONTEXT_TEMPLATE.format(previous_context=previous_context, chunk=chunk)
        else:
            prompt = chunk
        return await self.complete(prompt, system, max_tokens=self._rewrite_budget(chunk))

    async def optimize_paragraphs(self, chunk: str, max_words: int, content_type: ContentType) -> Completion:
        system = prompts.OPTIMIZE_SYSTEM_PROMPT.format(content_type=_content_type_name(content_type), max_words=max_words)
        return await self.complete(chunk, system, max_tokens=self._rewrite_budget(chunk))

    async def validate_credentials(self) -> bool:
        """Minimal completion to prove the key and deployment work."""
        try:
            completion = await self.complete(prompts.VALIDATION_PROMPT, max_tokens=5)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("Credential validation failed: %s", exc)
            return False
        logger.info("Credentials valid (model=%s, reply=%r)", self.model, completion.text.strip())
        return True


# ── Offline ──────────────────────────────────────────────────────────────────


class OfflineAnalysisClient:
    """Detects nothing and returns rewrite inputs unchanged, without network access."""

    def __init__(self):
        self.usage = UsageCounter()

    async def complete(self, prompt: str, system_prompt: str | None = None, max_tokens: int = 4096) -> Completion:
        return Completion(text="", tokens_used=0)

    async def parse(self, system_prompt: str, prompt: str, response_format: type[ResponseT]) -> ResponseT | None:
        return None

    async def detect_boundary(self, content: str, section_kind: SectionType) -> BoundaryInfo:
        return BoundaryInfo.not_found("Offline")

    async def detect_auxiliary_lists(self, content: str) -> list[AuxiliaryListInfo]:
        return []

    async def detect_citations(self, content: str) -> CitationDetection | None:
        return None

    async def detect_footnotes(self, content: str) -> FootnoteDetection | None:
        return None

    async def detect_chapters(self, content: str) -> ChapterDetection | None:
        return None

    async def extract_metadata(self, front_matter: str, sample_content: str | None = None) -> MetadataExtraction | None:
        return None

    async def detect_patterns(self, sample: str) -> PatternDetection | None:
        return None

    async def reflow_paragraphs(self, chunk: str, previous_context: str, content_type: ContentType) -> Completion:
        return Completion(text=chunk, tokens_used=0)

    async def optimize_paragraphs(self, chunk: str, max_words: int, content_type: ContentType) -> Completion:
        return Completion(text=chunk, tokens_used=0)

    async def validate_credentials(self) -> bool:
        return True
