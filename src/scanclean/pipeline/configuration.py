"""Per-run cleaning configuration (pydantic, frozen) and its presets."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from scanclean.defense.policy import PositionPolicy
from scanclean.errors import ConfigurationError
from scanclean.models import DEFAULT_SPECIAL_CHARACTERS, ContentType, MetadataFormat
from scanclean.pipeline.steps import DEFAULT_DISABLED_STEPS, CleaningStep
from scanclean.text.chapters import ChapterMarkerStyle, EndMarkerStyle

logger = logging.getLogger(__name__)


def _default_steps() -> frozenset[CleaningStep]:
    return frozenset(step for step in CleaningStep if step not in DEFAULT_DISABLED_STEPS)


class CleaningConfiguration(BaseModel):
    """Immutable options for one cleaning run."""

    model_config = ConfigDict(frozen=True)

    enabled_steps: frozenset[CleaningStep] = Field(default_factory=_default_steps)
    content_type: ContentType = ContentType.AUTO
    enable_chapter_segmentation: bool = True
    chapter_marker_style: ChapterMarkerStyle = ChapterMarkerStyle.HTML_COMMENTS
    end_marker_style: EndMarkerStyle = EndMarkerStyle.STANDARD
    metadata_format: MetadataFormat = MetadataFormat.YAML
    max_paragraph_words: int = Field(250, ge=20)
    preserve_code_blocks: bool = True
    preserve_math_symbols: bool = True
    # Sub-regions kept when they fall inside a removed region
    disabled_front_matter_components: frozenset[str] = frozenset()
    disabled_back_matter_components: frozenset[str] = frozenset()
    special_characters_to_remove: tuple[str, ...] = DEFAULT_SPECIAL_CHARACTERS
    position_policy: PositionPolicy = Field(default_factory=PositionPolicy)

    @field_validator("special_characters_to_remove")
    @classmethod
    def single_characters(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for character in value:
            if len(character) != 1:
                raise ValueError(f"special characters must be single characters, got {character!r}")
        return value

    def is_enabled(self, step: CleaningStep) -> bool:
        return step in self.enabled_steps

    def ordered_steps(self) -> list[CleaningStep]:
        return [step for step in CleaningStep if step in self.enabled_steps]

    def with_steps(self, steps) -> "CleaningConfiguration":
        return self.model_copy(update={"enabled_steps": frozenset(steps)})

    # ── Presets ──────────────────────────────────────────────────────────────

    @classmethod
    def default(cls) -> "CleaningConfiguration":
        return cls()

    @classmethod
    def minimal(cls) -> "CleaningConfiguration":
        """Furniture removal and character cleanup only; no rewrites."""
        return cls(
            enabled_steps=frozenset(
                {
                    CleaningStep.REMOVE_PAGE_NUMBERS,
                    CleaningStep.REMOVE_HEADERS_FOOTERS,
                    CleaningStep.CLEAN_SPECIAL_CHARACTERS,
                }
            ),
            enable_chapter_segmentation=False,
        )

    @classmethod
    def scholarly(cls) -> "CleaningConfiguration":
        """Everything on, including citations, notes, lists and back matter."""
        return cls(enabled_steps=frozenset(CleaningStep), content_type=ContentType.ACADEMIC)

    @classmethod
    def preset(cls, name: str) -> "CleaningConfiguration":
        presets = {"default": cls.default, "minimal": cls.minimal, "scholarly": cls.scholarly}
        if name not in presets:
            raise ConfigurationError(f"Unknown preset '{name}' (choose from {', '.join(presets)})")
        return presets[name]()

    @classmethod
    def from_json(cls, path: Path) -> "CleaningConfiguration":
        """Load a configuration file; unknown steps or bad values raise ConfigurationError."""
        with open(path, "r", encoding="utf-8") as fopen:
            data = json.load(fopen)
        try:
            configuration = cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {path}: {exc}") from exc
        logger.info("Loaded configuration from %s (%d steps enabled)", path, len(configuration.enabled_steps))
        return configuration
