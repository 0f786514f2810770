"""Shared configuration for the scanclean pipeline.

Credentials come from environment variables, optionally loaded from a .env
file at the project root.  Everything else here is a tuning constant used by
more than one module.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROOT = Path(__file__).parent.parent.parent.resolve()
load_dotenv(ROOT / ".env")


# ── Analysis service ─────────────────────────────────────────────────────────

DEFAULT_MODEL = "gpt-4.1"
DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class ServiceSettings:
    """Connection settings for the analysis service."""

    api_key: str
    model: str
    base_url: str | None = None
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def is_azure(self) -> bool:
        return self.base_url is not None

    @classmethod
    def from_env(cls) -> "ServiceSettings | None":
        """Read settings from the environment.  Returns None if no credentials are set.

        Azure OpenAI (AZURE_OPENAI_ENDPOINT, AZURE_OPENAI_API_KEY,
        AZURE_OPENAI_DEPLOYMENT_NAME) takes precedence over plain OpenAI
        (OPENAI_API_KEY, SCANCLEAN_MODEL).
        """
        max_retries = int(os.getenv("SCANCLEAN_MAX_RETRIES", str(DEFAULT_MAX_RETRIES)))
        timeout = float(os.getenv("SCANCLEAN_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))

        endpoint = os.getenv("AZURE_OPENAI_ENDPOINT", "").rstrip("/")
        azure_key = os.getenv("AZURE_OPENAI_API_KEY", "")
        deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "")
        if all([endpoint, azure_key, deployment]):
            return cls(
                api_key=azure_key,
                model=deployment,
                base_url=f"{endpoint}/openai/v1/",
                max_retries=max_retries,
                timeout=timeout,
            )

        api_key = os.getenv("OPENAI_API_KEY", "")
        if api_key:
            return cls(
                api_key=api_key,
                model=os.getenv("SCANCLEAN_MODEL", DEFAULT_MODEL),
                max_retries=max_retries,
                timeout=timeout,
            )

        logger.warning("No analysis-service credentials configured")
        return None


# ── Chunking ─────────────────────────────────────────────────────────────────


class ChunkingDefaults:
    """Word targets for chunks sent to the analysis service."""

    TARGET_WORDS = 2500
    OVERLAP_WORDS = 200
    # A trailing chunk shorter than this is folded into the one before it
    MIN_WORDS = 500


# ── Sampling ─────────────────────────────────────────────────────────────────

# A "page" of OCR Markdown, for sizing detection samples
LINES_PER_PAGE = 50

# Characters of the document head sent for metadata extraction
FRONT_MATTER_CHARS = 5000

# Characters of the document head sent for front matter / TOC detection
BOUNDARY_SAMPLE_CHARS = 40_000

# Lines of the document tail sent for back matter and index detection
BACK_MATTER_TAIL_LINES = 2000
INDEX_TAIL_LINES = 1500

# Pages sampled for each detection call
METADATA_SAMPLE_PAGES = 10
PATTERN_SAMPLE_PAGES = 30
CITATION_SAMPLE_PAGES = 30
AUXILIARY_SAMPLE_PAGES = 50
FOOTNOTE_SAMPLE_PAGES = 50
CHAPTER_SAMPLE_PAGES = 100

# Characters sent to reconnaissance and final review
RECONNAISSANCE_SAMPLE_CHARS = 60_000
FINAL_REVIEW_SAMPLE_CHARS = 30_000

# Paragraph optimization cap for children's books
CHILDRENS_MAX_PARAGRAPH_WORDS = 150
