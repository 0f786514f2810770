"""Unit tests for the command-line entry point.

Tests cover:
  - parse_steps: numbers, names, unknown steps
  - load_configuration: presets and --steps overrides
  - an offline run writing the cleaned file and the report
"""

# pylint: disable=missing-class-docstring,missing-function-docstring

import argparse
import json

import pytest
from fakes import front_matter_lines, prose_lines

from scanclean.cli import build_parser, load_configuration, parse_steps, run
from scanclean.models import ContentType
from scanclean.pipeline.steps import CleaningStep


class TestParseSteps:
    def test_numbers(self):
        assert parse_steps("3,4,12") == [
            CleaningStep.REMOVE_PAGE_NUMBERS,
            CleaningStep.REMOVE_HEADERS_FOOTERS,
            CleaningStep.CLEAN_SPECIAL_CHARACTERS,
        ]

    def test_names_and_spaces(self):
        assert parse_steps("remove_index, add_structure") == [CleaningStep.REMOVE_INDEX, CleaningStep.ADD_STRUCTURE]

    def test_unknown_step(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_steps("3,remove_everything")

    def test_out_of_range_number(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_steps("17")

    def test_empty(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_steps(",")


class TestLoadConfiguration:
    def test_preset(self):
        args = build_parser().parse_args(["book.md", "--preset", "minimal"])
        assert [step.number for step in load_configuration(args).ordered_steps()] == [3, 4, 12]

    def test_steps_override_preset(self):
        args = build_parser().parse_args(["book.md", "--preset", "scholarly", "--steps", "12,3"])
        configuration = load_configuration(args)
        assert [step.number for step in configuration.ordered_steps()] == [3, 12]
        assert configuration.content_type == ContentType.ACADEMIC


class TestOfflineRun:
    def test_writes_output_and_report(self, tmp_path):
        source = tmp_path / "book.md"
        source.write_text("\n".join(front_matter_lines() + ["# Chapter 1"] + prose_lines(192)), encoding="utf-8")
        report = tmp_path / "report.json"
        args = build_parser().parse_args([str(source), "--no-ai", "--steps", "3,5,12", "--report", str(report)])

        assert run(args) == 0
        cleaned = (tmp_path / "book.clean.md").read_text(encoding="utf-8")
        assert "ISBN" not in cleaned
        assert "# Chapter 1" in cleaned
        data = json.loads(report.read_text(encoding="utf-8"))
        assert [step["number"] for step in data["steps"]] == [3, 5, 12]
        assert data["api_calls"] == 0
