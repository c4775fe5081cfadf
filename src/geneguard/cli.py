"""Command-line interface for GeneGuard."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .intake import InvalidUploadError, read_variant_file
from .models import PatientProfile
from .narrative import PROVIDERS, BaseNarrator, MockNarrator, NarrativeError, build_narrator
from .pipeline import RiskReportPipeline, VariantExtractionError
from .prompt import PromptError, PromptTemplate
from .variants import (
    MAX_ALLELE_FREQUENCY_COMMON,
    MAX_VARIANTS_TO_REPORT,
    MIN_VARIANT_QUALITY,
    FilterSettings,
    extract_meaningful_gene_info,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_EXTRACTION_FAILED = 1
EXIT_NARRATIVE_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prioritize VCF variants and generate a disease-risk report")
    parser.add_argument("vcf", type=Path, help="Path to an annotated .vcf or .txt file")
    parser.add_argument("--age", type=int, default=25, help="Patient age used in the prompt")
    parser.add_argument("--gender", default="female", help="Patient gender used in the prompt")
    parser.add_argument("--provider", choices=PROVIDERS, default="gemini", help="Narrative model provider")
    parser.add_argument(
        "--model",
        default=None,
        help=(
            "Model identifier for the provider. For Gemini this can also be set via the "
            "GENEGUARD_GEMINI_MODEL environment variable."
        ),
    )
    parser.add_argument("--api-key", help="API key for the narrative model provider")
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use the mock narrator instead of a hosted model (no external API calls)",
    )
    parser.add_argument("--prompt", type=Path, default=None, help="Path to a custom prompt template")
    parser.add_argument(
        "--extract-only",
        action="store_true",
        help="Print the prioritized variants without calling a model",
    )
    parser.add_argument("--min-quality", type=float, default=MIN_VARIANT_QUALITY, help="Minimum QUAL score")
    parser.add_argument(
        "--max-af",
        type=float,
        default=MAX_ALLELE_FREQUENCY_COMMON,
        help="Allele frequency above which a variant is considered common",
    )
    parser.add_argument(
        "--max-variants", type=int, default=MAX_VARIANTS_TO_REPORT, help="Maximum variants to report"
    )
    parser.add_argument("--output", type=Path, default=None, help="Path to write JSON results")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s:%(name)s:%(message)s")

    try:
        settings = FilterSettings(
            min_quality=args.min_quality,
            max_allele_frequency=args.max_af,
            max_variants=args.max_variants,
        )
        profile = PatientProfile(age=args.age, gender=args.gender)
    except ValueError as exc:
        parser.error(str(exc))

    if args.extract_only:
        try:
            content = read_variant_file(args.vcf)
        except (FileNotFoundError, InvalidUploadError) as exc:
            return _fail(args, str(exc), EXIT_EXTRACTION_FAILED)
        result = extract_meaningful_gene_info(content, settings)
        _emit(args, result.to_dict())
        return EXIT_OK if result.ok else EXIT_EXTRACTION_FAILED

    try:
        pipeline = RiskReportPipeline(
            narrator=_build_narrator(args),
            template=PromptTemplate.load(args.prompt),
            settings=settings,
        )
        response = pipeline.analyze_file(args.vcf, profile)
    except (FileNotFoundError, InvalidUploadError, VariantExtractionError) as exc:
        return _fail(args, str(exc), EXIT_EXTRACTION_FAILED)
    except (PromptError, NarrativeError, ValueError, ImportError) as exc:
        return _fail(args, f"Prediction process failed: {exc}", EXIT_NARRATIVE_FAILED)

    _emit(args, response.to_dict())
    return EXIT_OK


def _build_narrator(args: argparse.Namespace) -> BaseNarrator:
    """Instantiate the appropriate narrator implementation."""
    if args.mock:
        return MockNarrator()
    return build_narrator(args.provider, api_key=args.api_key, model=args.model)


def _fail(args: argparse.Namespace, message: str, code: int) -> int:
    logger.warning(message)
    _emit(args, {"error": message})
    return code


def _emit(args: argparse.Namespace, payload: Any) -> None:
    serialized = json.dumps(payload, indent=2)
    if args.output:
        args.output.write_text(serialized, encoding="utf-8")
        logger.info("Wrote results to %s", args.output)
    else:
        print(serialized)


if __name__ == "__main__":
    raise SystemExit(main())
