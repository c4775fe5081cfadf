"""Top-level package for GeneGuard."""

from .intake import InvalidUploadError, read_variant_file, validate_upload
from .models import (
    Annotation,
    DiseaseAssociation,
    ExtractionErrorKind,
    ExtractionResult,
    GeneInterpretation,
    PatientProfile,
    PredictionResponse,
    ProcessedVariant,
    RiskReport,
    SkipCounts,
)
from .narrative import (
    BaseNarrator,
    ClaudeNarrator,
    GeminiNarrator,
    GroqNarrator,
    MockNarrator,
    NarrativeError,
    OpenAINarrator,
    ReportParseError,
    build_narrator,
    parse_report_json,
)
from .pipeline import RiskReportPipeline, VariantExtractionError
from .prompt import PromptError, PromptTemplate
from .variants import (
    CONSEQUENCE_PRIORITY,
    INTERESTING_CONSEQUENCES,
    FilterSettings,
    extract_meaningful_gene_info,
)

__all__ = [
    # Narrators
    "BaseNarrator",
    "ClaudeNarrator",
    "GeminiNarrator",
    "GroqNarrator",
    "MockNarrator",
    "OpenAINarrator",
    # Pipeline
    "RiskReportPipeline",
    "PromptTemplate",
    "FilterSettings",
    # Data models
    "Annotation",
    "DiseaseAssociation",
    "ExtractionErrorKind",
    "ExtractionResult",
    "GeneInterpretation",
    "PatientProfile",
    "PredictionResponse",
    "ProcessedVariant",
    "RiskReport",
    "SkipCounts",
    # Errors
    "InvalidUploadError",
    "NarrativeError",
    "PromptError",
    "ReportParseError",
    "VariantExtractionError",
    # Constants
    "CONSEQUENCE_PRIORITY",
    "INTERESTING_CONSEQUENCES",
    # Functions
    "build_narrator",
    "extract_meaningful_gene_info",
    "parse_report_json",
    "read_variant_file",
    "validate_upload",
]

__version__ = "0.1.0"
