"""Unit tests for the steps and configuration modules.

Tests cover:
  - CleaningStep numbering, labels, methods and phases
  - CleaningConfiguration defaults, presets, immutability and step selection
  - loading configurations from JSON
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import json

import pytest
from pydantic import ValidationError

from scanclean.errors import ConfigurationError
from scanclean.models import ContentType
from scanclean.pipeline.configuration import CleaningConfiguration
from scanclean.pipeline.steps import DEFAULT_DISABLED_STEPS, CleaningStep, PipelinePhase, ProcessingMethod

# ===========================================================================
# CleaningStep tests
# ===========================================================================


class TestCleaningStep:
    def test_sixteen_steps_numbered_in_order(self):
        assert [step.number for step in CleaningStep] == list(range(1, 17))
        assert CleaningStep.from_number(12) == CleaningStep.CLEAN_SPECIAL_CHARACTERS

    def test_from_number_out_of_range(self):
        with pytest.raises(ValueError):
            CleaningStep.from_number(17)

    def test_label(self):
        assert CleaningStep.REMOVE_TABLE_OF_CONTENTS.label == "Remove table of contents"

    def test_hybrid_steps(self):
        hybrid = [step.number for step in CleaningStep if step.method == ProcessingMethod.HYBRID]
        assert hybrid == [3, 4, 5, 6, 7, 8, 9]

    def test_phases(self):
        assert CleaningStep.REMOVE_INDEX.phase == PipelinePhase.STRUCTURAL_CLEANING
        assert CleaningStep.REFLOW_PARAGRAPHS.phase == PipelinePhase.OPTIMIZATION

    def test_removal_steps(self):
        assert CleaningStep.REMOVE_CITATIONS.is_removal
        assert not CleaningStep.REFLOW_PARAGRAPHS.is_removal


# ===========================================================================
# CleaningConfiguration tests
# ===========================================================================


class TestCleaningConfiguration:
    def test_default_disables_reference_and_back_matter_steps(self):
        configuration = CleaningConfiguration()
        assert len(configuration.enabled_steps) == 12
        assert not any(configuration.is_enabled(step) for step in DEFAULT_DISABLED_STEPS)
        assert configuration.content_type == ContentType.AUTO

    def test_ordered_steps_follow_pipeline_order(self):
        configuration = CleaningConfiguration().with_steps(
            [CleaningStep.ADD_STRUCTURE, CleaningStep.RECONNAISSANCE, CleaningStep.REMOVE_INDEX]
        )
        assert configuration.ordered_steps() == [
            CleaningStep.RECONNAISSANCE,
            CleaningStep.REMOVE_INDEX,
            CleaningStep.ADD_STRUCTURE,
        ]

    def test_frozen(self):
        with pytest.raises(ValidationError):
            CleaningConfiguration().max_paragraph_words = 100

    def test_paragraph_limit_floor(self):
        with pytest.raises(ValidationError):
            CleaningConfiguration(max_paragraph_words=5)

    def test_special_characters_single(self):
        with pytest.raises(ValidationError):
            CleaningConfiguration(special_characters_to_remove=("ab",))

    def test_minimal_preset(self):
        configuration = CleaningConfiguration.preset("minimal")
        assert [step.number for step in configuration.ordered_steps()] == [3, 4, 12]
        assert not configuration.enable_chapter_segmentation

    def test_scholarly_preset(self):
        configuration = CleaningConfiguration.preset("scholarly")
        assert len(configuration.ordered_steps()) == 16
        assert configuration.content_type == ContentType.ACADEMIC

    def test_unknown_preset(self):
        with pytest.raises(ConfigurationError):
            CleaningConfiguration.preset("everything")


class TestFromJson:
    def test_loads_steps_and_policy(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "enabled_steps": ["remove_page_numbers", "remove_index"],
                    "max_paragraph_words": 120,
                    "position_policy": {"index_min_start": 0.8},
                }
            ),
            encoding="utf-8",
        )
        configuration = CleaningConfiguration.from_json(path)
        assert configuration.ordered_steps() == [CleaningStep.REMOVE_PAGE_NUMBERS, CleaningStep.REMOVE_INDEX]
        assert configuration.max_paragraph_words == 120
        assert configuration.position_policy.index_min_start == 0.8

    def test_unknown_step_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"enabled_steps": ["remove_everything"]}), encoding="utf-8")
        with pytest.raises(ConfigurationError):
            CleaningConfiguration.from_json(path)
