"""Data models used throughout GeneGuard."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

GENE_NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Annotation:
    """A single effect prediction decoded from an ANN/EFF entry."""

    allele: str
    consequence: str
    impact: str
    gene: str

    @property
    def terms(self) -> Tuple[str, ...]:
        return tuple(self.consequence.split("&"))


@dataclass(frozen=True)
class ProcessedVariant:
    """A variant record that survived every filter, reduced to its best annotation."""

    representation: str
    chrom: str
    pos: str
    id: str
    ref: str
    alt: str
    qual: float
    filter: str
    gene: str
    consequence: str
    impact: str

    def to_dict(self) -> dict:
        return asdict(self)

    def to_prompt_input(self) -> dict:
        return {
            "variant": self.representation,
            "gene": self.gene,
            "consequence": self.consequence,
            "impact": self.impact,
            "quality": self.qual,
        }


@dataclass
class SkipCounts:
    """Per-call tallies of records rejected by each filter stage."""

    quality: int = 0
    allele_frequency: int = 0
    consequence: int = 0

    def describe(self) -> str:
        return (
            f"Quality/Filter skips: {self.quality}, "
            f"AF skips: {self.allele_frequency}, "
            f"Consequence skips: {self.consequence}"
        )

    def to_dict(self) -> dict:
        return asdict(self)


class ExtractionErrorKind(str, Enum):
    EMPTY_INPUT = "empty_input"
    NO_DATA_LINES = "no_data_lines"
    NO_QUALIFYING_VARIANTS = "no_qualifying_variants"


@dataclass
class ExtractionResult:
    """Outcome of variant extraction: either an error or a ranked variant set."""

    variants: List[ProcessedVariant] = field(default_factory=list)
    genes: List[str] = field(default_factory=list)
    variant_summary: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ExtractionErrorKind] = None
    skip_counts: SkipCounts = field(default_factory=SkipCounts)

    def __post_init__(self) -> None:
        if self.error and (self.variants or self.genes or self.variant_summary):
            msg = "an extraction error cannot carry variants, genes or a summary"
            raise ValueError(msg)

    @classmethod
    def failure(
        cls,
        kind: ExtractionErrorKind,
        reason: str,
        skip_counts: Optional[SkipCounts] = None,
    ) -> "ExtractionResult":
        return cls(error=reason, error_kind=kind, skip_counts=skip_counts or SkipCounts())

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "variantSummary": self.variant_summary,
            "variants": [variant.to_dict() for variant in self.variants],
            "genes": list(self.genes),
            "error": self.error,
            "errorKind": self.error_kind.value if self.error_kind else None,
            "skipCounts": self.skip_counts.to_dict(),
        }


@dataclass
class PatientProfile:
    """Demographics substituted into the report prompt."""

    age: int = 25
    gender: str = "female"

    def __post_init__(self) -> None:
        if self.age < 0:
            msg = "age cannot be negative"
            raise ValueError(msg)
        normalized = (self.gender or "").strip()
        if not normalized:
            msg = "gender cannot be blank"
            raise ValueError(msg)
        self.gender = normalized


def _pick(payload: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


@dataclass
class DiseaseAssociation:
    name: str
    description: Optional[str] = None
    inheritance: Optional[str] = None
    confidence: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DiseaseAssociation":
        return cls(
            name=str(_pick(payload, "name", "disease", "diseaseName", default="")).strip(),
            description=_pick(payload, "description"),
            inheritance=_pick(payload, "inheritance", "inheritancePattern", "inheritance_pattern"),
            confidence=_pick(payload, "confidence", "confidenceLevel", "confidence_level"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GeneInterpretation:
    name: str
    function: Optional[str] = None
    variant_implication: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "GeneInterpretation":
        return cls(
            name=str(_pick(payload, "name", "gene", "geneName", "gene_name", default="")).strip(),
            function=_pick(payload, "function", "geneFunction", "gene_function"),
            variant_implication=_pick(
                payload, "variantImplication", "variant_implication", "implication"
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RiskReport:
    """Structured view over the JSON object returned by the narrative model."""

    overall_risk_level: Optional[str] = None
    summary: Optional[str] = None
    disease_associations: List[DiseaseAssociation] = field(default_factory=list)
    gene_interpretations: List[GeneInterpretation] = field(default_factory=list)
    recommendation: Optional[str] = None
    limitations: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RiskReport":
        diseases = _pick(payload, "diseaseAssociations", "disease_associations", default=[])
        genes = _pick(payload, "geneInterpretations", "gene_interpretations", default=[])
        if not isinstance(diseases, list):
            diseases = []
        if not isinstance(genes, list):
            genes = []
        return cls(
            overall_risk_level=_pick(
                payload, "overallRiskLevel", "overall_risk_level", "riskLevel", "risk_level"
            ),
            summary=_pick(payload, "summary"),
            disease_associations=[
                DiseaseAssociation.from_payload(entry) for entry in diseases if isinstance(entry, dict)
            ],
            gene_interpretations=[
                GeneInterpretation.from_payload(entry) for entry in genes if isinstance(entry, dict)
            ],
            recommendation=_pick(payload, "recommendation", "recommendations"),
            limitations=_pick(payload, "limitations"),
            raw=dict(payload),
        )

    def to_dict(self) -> dict:
        # The model's own keys are passed through untouched.
        return dict(self.raw)


@dataclass
class PredictionResponse:
    """Final payload handed to the presentation layer."""

    ai_analysis: RiskReport
    processed_variants: List[ProcessedVariant] = field(default_factory=list)
    identified_genes: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "aiAnalysis": self.ai_analysis.to_dict(),
            "processedVariantsInput": [variant.to_prompt_input() for variant in self.processed_variants],
            "identifiedGenesForPrompt": list(self.identified_genes),
            "generatedAt": self.generated_at.isoformat(),
        }
