"""Rule-based extraction and prioritization of annotated VCF variant records."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import (
    GENE_NOT_AVAILABLE,
    Annotation,
    ExtractionErrorKind,
    ExtractionResult,
    ProcessedVariant,
    SkipCounts,
)

logger = logging.getLogger(__name__)

# Ordered from most to least severe; the index is the priority rank.
INTERESTING_CONSEQUENCES: Tuple[str, ...] = (
    "transcript_ablation",
    "splice_acceptor_variant",
    "splice_donor_variant",
    "stop_gained",
    "frameshift_variant",
    "stop_lost",
    "start_lost",
    "transcript_amplification",
    "inframe_insertion",
    "inframe_deletion",
    "missense_variant",
    "protein_altering_variant",
    "splice_region_variant",
    "incomplete_terminal_codon_variant",
    "start_retained_variant",
    "stop_retained_variant",
    "synonymous_variant",
)
CONSEQUENCE_PRIORITY: Dict[str, int] = {term: index for index, term in enumerate(INTERESTING_CONSEQUENCES)}

ALLELE_FREQUENCY_KEYS: Tuple[str, ...] = ("AF", "GMAF", "gnomAD_AF")
ANNOTATION_KEYS: Tuple[str, ...] = ("ANN", "EFF")

MIN_VARIANT_QUALITY = 30.0
MAX_ALLELE_FREQUENCY_COMMON = 0.01
MAX_VARIANTS_TO_REPORT = 5
MIN_COLUMNS = 8
MIN_ANNOTATION_FIELDS = 5

EMPTY_INPUT_REASON = "File is empty or contains no processable content."
NO_DATA_LINES_REASON = "No data lines found in VCF file after filtering headers."

_SUMMARY_GENE = re.compile(r"\(Gene: ([^,()]*), Effect: ")
_NUMERIC_PREFIX = re.compile(r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))")

InfoValue = Union[str, bool]


@dataclass(frozen=True)
class FilterSettings:
    """Thresholds applied by :func:`extract_meaningful_gene_info`."""

    min_quality: float = MIN_VARIANT_QUALITY
    max_allele_frequency: float = MAX_ALLELE_FREQUENCY_COMMON
    max_variants: int = MAX_VARIANTS_TO_REPORT
    interesting_consequences: Tuple[str, ...] = INTERESTING_CONSEQUENCES

    def __post_init__(self) -> None:
        if self.max_variants < 1:
            msg = "max_variants must be at least 1"
            raise ValueError(msg)
        if not self.interesting_consequences:
            msg = "interesting_consequences cannot be empty"
            raise ValueError(msg)

    @property
    def priority(self) -> Dict[str, int]:
        return {term: index for index, term in enumerate(self.interesting_consequences)}


def parse_info_field(info: str) -> Dict[str, InfoValue]:
    """Decode a VCF INFO column into a key/value mapping.

    Flag-only keys (and keys with an empty value) map to ``True``. Only the
    first ``=`` separates key from value.
    """

    info_map: Dict[str, InfoValue] = {}
    for entry in info.split(";"):
        if not entry:
            continue
        key, _, value = entry.partition("=")
        info_map[key] = value or True
    return info_map


def _parse_float(token: str) -> Optional[float]:
    """Read the longest numeric prefix of ``token``; trailing text is ignored."""

    match = _NUMERIC_PREFIX.match(token)
    if not match:
        return None
    return float(match.group(1).replace("Infinity", "inf"))


def max_allele_frequency(info_map: Mapping[str, InfoValue]) -> Optional[float]:
    """Return the highest parseable allele frequency, or ``None`` when unknown."""

    for key in ALLELE_FREQUENCY_KEYS:
        raw = info_map.get(key)
        if not isinstance(raw, str):
            continue
        frequencies = [value for value in map(_parse_float, raw.split(",")) if value is not None]
        return max(frequencies) if frequencies else None
    return None


def parse_annotations(raw: str) -> List[Annotation]:
    """Split an ANN/EFF value into annotations, ignoring truncated entries."""

    annotations: List[Annotation] = []
    for entry in raw.split(","):
        fields = entry.split("|")
        if len(fields) < MIN_ANNOTATION_FIELDS:
            continue
        annotations.append(
            Annotation(allele=fields[0], consequence=fields[1], impact=fields[2], gene=fields[3])
        )
    return annotations


def select_best_annotation(
    annotations: Iterable[Annotation], priority: Mapping[str, int] = CONSEQUENCE_PRIORITY
) -> Optional[Annotation]:
    """Return the annotation carrying the most severe interesting consequence term.

    The first annotation to reach a rank wins; a later one only replaces it
    with a strictly lower rank.
    """

    best: Optional[Annotation] = None
    best_rank: Optional[int] = None
    for annotation in annotations:
        for term in annotation.terms:
            rank = priority.get(term)
            if rank is None:
                continue
            if best_rank is None or rank < best_rank:
                best, best_rank = annotation, rank
    return best


def consequence_rank(consequence: str, priority: Mapping[str, int] = CONSEQUENCE_PRIORITY) -> float:
    """Rank of the first ``&``-joined term; unknown terms sort last."""

    first_term = consequence.split("&")[0]
    rank = priority.get(first_term)
    return math.inf if rank is None else rank


def collect_genes(variants: Iterable[ProcessedVariant]) -> List[str]:
    """Unique gene names in first-seen order, without the N/A placeholder."""

    genes: Dict[str, None] = {}
    for variant in variants:
        if variant.gene and variant.gene != GENE_NOT_AVAILABLE:
            genes.setdefault(variant.gene, None)
    return list(genes)


def summarize_variants(variants: Iterable[ProcessedVariant]) -> str:
    return "; ".join(
        f"{variant.representation} (Gene: {variant.gene}, Effect: {variant.consequence})"
        for variant in variants
    )


def genes_from_summary(summary: str) -> List[str]:
    """Recover the gene list from a summary built by :func:`summarize_variants`."""

    genes: Dict[str, None] = {}
    for gene in _SUMMARY_GENE.findall(summary or ""):
        if gene and gene != GENE_NOT_AVAILABLE:
            genes.setdefault(gene, None)
    return list(genes)


def _label(variant_id: str, chrom: str, pos: str) -> str:
    return variant_id if variant_id and variant_id != "." else f"{chrom}:{pos}"


def _data_lines(content: str) -> List[str]:
    lines = (line.rstrip("\r") for line in content.split("\n"))
    return [line for line in lines if line.strip() and not line.startswith("#")]


def _evaluate_line(
    line: str,
    settings: FilterSettings,
    priority: Mapping[str, int],
    counts: SkipCounts,
) -> Optional[ProcessedVariant]:
    parts = line.split("\t")
    if len(parts) < MIN_COLUMNS:
        logger.debug("Skipping malformed line (not enough columns): %.30s...", line)
        return None

    chrom, pos, variant_id, ref, alt, qual_text, filter_status, info = parts[:MIN_COLUMNS]

    if not chrom or not pos or not ref or not alt or ref == "." or alt in {".", "*"} or "<" in alt:
        logger.debug("Skipping line with invalid core fields: %.30s...", line)
        return None

    quality = _parse_float(qual_text)
    if quality is None or quality < settings.min_quality:
        logger.debug("Skipping low quality (QUAL: %s): %.30s...", qual_text, line)
        counts.quality += 1
        return None

    if filter_status.upper() != "PASS" and filter_status != ".":
        logger.debug("Skipping filtered (FILTER: %s): %.30s...", filter_status, line)
        counts.quality += 1
        return None

    info_map = parse_info_field(info)
    label = _label(variant_id, chrom, pos)

    frequency = max_allele_frequency(info_map)
    if frequency is not None and frequency > settings.max_allele_frequency:
        logger.debug("Skipping common variant (AF: %s): %s", frequency, label)
        counts.allele_frequency += 1
        return None

    raw_annotations = next(
        (info_map[key] for key in ANNOTATION_KEYS if isinstance(info_map.get(key), str)), None
    )
    best = select_best_annotation(parse_annotations(raw_annotations), priority) if raw_annotations else None
    if best is None:
        logger.debug("Skipping variant with no prioritized annotation: %s", label)
        counts.consequence += 1
        return None

    logger.info(
        "Accepted variant %s with consequence %s in gene %s", label, best.consequence, best.gene
    )
    return ProcessedVariant(
        representation=f"{label} {ref}>{alt}",
        chrom=chrom,
        pos=pos,
        id=variant_id,
        ref=ref,
        alt=alt,
        qual=quality,
        filter=filter_status,
        gene=best.gene or GENE_NOT_AVAILABLE,
        consequence=best.consequence,
        impact=best.impact,
    )


def extract_meaningful_gene_info(
    content: Optional[str], settings: Optional[FilterSettings] = None
) -> ExtractionResult:
    """Filter, rank and summarize the notable variants in raw VCF text.

    Scanning stops as soon as ``settings.max_variants`` records have been
    accepted, so later records are never considered even if they carry a more
    severe consequence. The accepted records are then stably sorted by
    consequence priority.

    Every failure is reported through :class:`ExtractionResult`; this function
    does not raise for malformed input.
    """

    settings = settings or FilterSettings()
    if not content or not content.strip():
        logger.info("Variant file is empty")
        return ExtractionResult.failure(ExtractionErrorKind.EMPTY_INPUT, EMPTY_INPUT_REASON)

    lines = _data_lines(content)
    if not lines:
        logger.info("No data lines after filtering headers")
        return ExtractionResult.failure(ExtractionErrorKind.NO_DATA_LINES, NO_DATA_LINES_REASON)
    logger.debug("Found %d data lines to process", len(lines))

    priority = settings.priority
    counts = SkipCounts()
    accepted: List[ProcessedVariant] = []
    for line in lines:
        if len(accepted) >= settings.max_variants:
            logger.debug("Reached the limit of %d reported variants", settings.max_variants)
            break
        variant = _evaluate_line(line, settings, priority, counts)
        if variant is not None:
            accepted.append(variant)

    logger.info("Filter summary - %s", counts.describe())

    if not accepted:
        reason = f"No variants passed all filtering criteria. ({counts.describe()})"
        logger.info(reason)
        return ExtractionResult.failure(ExtractionErrorKind.NO_QUALIFYING_VARIANTS, reason, counts)

    ranked = sorted(accepted, key=lambda variant: consequence_rank(variant.consequence, priority))
    return ExtractionResult(
        variants=ranked,
        genes=collect_genes(ranked),
        variant_summary=summarize_variants(ranked),
        skip_counts=counts,
    )


def format_variant_details(variants: Sequence[ProcessedVariant]) -> str:
    """Verbose per-variant listing used by the report prompt."""

    if not variants:
        return ""
    lines = [
        f"- Variant: {variant.representation}, Gene: {variant.gene or GENE_NOT_AVAILABLE}, "
        f"Predicted Effect: {variant.consequence or GENE_NOT_AVAILABLE}, "
        f"Impact: {variant.impact or GENE_NOT_AVAILABLE}, QUAL: {_format_quality(variant.qual)}"
        for variant in variants
    ]
    return "\nKey variants considered for analysis (effects are based on VCF annotations):\n" + "\n".join(lines)


def _format_quality(quality: float) -> str:
    return str(int(quality)) if quality.is_integer() else str(quality)
