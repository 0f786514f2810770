"""Command-line entry point: clean one OCR'd Markdown file.

    scanclean book.md -o book.clean.md --report book.report.json
    scanclean book.md --preset scholarly
    scanclean book.md --steps 3,4,12 --no-ai
    scanclean --validate-key
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from scanclean.analysis.client import OfflineAnalysisClient, OpenAIAnalysisClient
from scanclean.errors import CleaningCancelled, CleaningError
from scanclean.pipeline.configuration import CleaningConfiguration
from scanclean.pipeline.orchestrator import CleaningPipeline
from scanclean.pipeline.providers import LLMFinalReview, LLMPreDetection, LLMReconnaissance
from scanclean.pipeline.steps import CleaningStep

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def parse_steps(value: str) -> list[CleaningStep]:
    """'3,4,12' or 'remove_page_numbers,clean_special_characters' -> steps."""
    steps = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            steps.append(CleaningStep.from_number(int(item)) if item.isdigit() else CleaningStep(item))
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Unknown step '{item}'") from exc
    if not steps:
        raise argparse.ArgumentTypeError("No steps given")
    return steps


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clean OCR'd Markdown books into reading-ready text")
    parser.add_argument("input", type=Path, nargs="?", help="Markdown file to clean")
    parser.add_argument("-o", "--output", type=Path, help="Cleaned Markdown path (default: INPUT.clean.md)")
    parser.add_argument("--report", type=Path, help="Write a JSON run report here")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--preset", choices=["default", "minimal", "scholarly"], default="default", help="Configuration preset (default: default)")
    parser.add_argument("--steps", type=parse_steps, help="Comma-separated step numbers or names to run, replacing the preset's")
    parser.add_argument("--no-ai", action="store_true", help="Run offline: heuristics only, rewrites keep content unchanged")
    parser.add_argument("--validate-key", action="store_true", help="Check analysis-service credentials and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_configuration(args: argparse.Namespace) -> CleaningConfiguration:
    configuration = CleaningConfiguration.from_json(args.config) if args.config else CleaningConfiguration.preset(args.preset)
    if args.steps:
        configuration = configuration.with_steps(args.steps)
    return configuration


def build_pipeline(args: argparse.Namespace, bar: tqdm) -> CleaningPipeline:
    def step_started(step: CleaningStep) -> None:
        bar.set_description(f"{step.number:>2}. {step.label}")

    def step_completed(step: CleaningStep, result) -> None:  # pylint: disable=unused-argument
        bar.update(1)

    def progress(fraction: float, message: str) -> None:  # pylint: disable=unused-argument
        bar.set_postfix_str(message)

    if args.no_ai:
        return CleaningPipeline(
            OfflineAnalysisClient(), on_step_started=step_started, on_step_completed=step_completed, on_progress=progress
        )
    client = OpenAIAnalysisClient.from_env()
    if client is None:
        raise CleaningError("No analysis-service credentials configured (set them in .env or use --no-ai)")
    return CleaningPipeline(
        client,
        reconnaissance=LLMReconnaissance(client),
        predetection=LLMPreDetection(client),
        final_review=LLMFinalReview(client),
        on_step_started=step_started,
        on_step_completed=step_completed,
        on_progress=progress,
    )


def validate_key() -> int:
    client = OpenAIAnalysisClient.from_env()
    if client is None:
        logger.error("No analysis-service credentials configured")
        return EXIT_FAILURE
    return 0 if asyncio.run(client.validate_credentials()) else EXIT_FAILURE


def run(args: argparse.Namespace) -> int:
    configuration = load_configuration(args)
    with open(args.input, "r", encoding="utf-8") as fopen:
        document = fopen.read()

    with tqdm(total=len(configuration.ordered_steps()), unit="step") as bar:
        pipeline = build_pipeline(args, bar)
        result = asyncio.run(pipeline.run(document, configuration))

    output = args.output or args.input.with_suffix(".clean.md")
    with open(output, "w", encoding="utf-8") as fopen:
        fopen.write(result.content)
    logger.info("Wrote %d words to %s (was %d)", result.word_count, output, result.original_word_count)

    if args.report:
        with open(args.report, "w", encoding="utf-8") as fopen:
            json.dump(result.to_report(), fopen, indent=2, ensure_ascii=False)
        logger.info("Wrote report to %s", args.report)

    for anomaly in result.anomalies:
        logger.warning("Anomaly [%s] %s: %s", anomaly.severity.value, anomaly.step.value, anomaly.message)
    if result.confidence is not None:
        logger.info("Overall confidence %.2f, %d API calls, %d tokens", result.confidence, result.api_calls, result.tokens)
    return 0


def main():
    """Parse arguments, run the pipeline, exit 1 on failure and 130 on cancellation."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
    )
    # Suppress per-request HTTP logs from httpx so they don't clobber the tqdm bar
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if args.validate_key:
        sys.exit(validate_key())
    if args.input is None:
        parser.error("an input file is required")

    try:
        sys.exit(run(args))
    except (CleaningCancelled, KeyboardInterrupt):
        logger.warning("Cancelled")
        sys.exit(EXIT_CANCELLED)
    except (CleaningError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
