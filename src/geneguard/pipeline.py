"""High-level orchestration for the GeneGuard report workflow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .intake import MAX_UPLOAD_BYTES, read_variant_file
from .models import ExtractionResult, PatientProfile, PredictionResponse
from .narrative import BaseNarrator, MockNarrator
from .prompt import PromptTemplate
from .variants import FilterSettings, extract_meaningful_gene_info

logger = logging.getLogger(__name__)


class VariantExtractionError(RuntimeError):
    """Raised when a variant file yields nothing worth reporting."""

    def __init__(self, result: ExtractionResult) -> None:
        self.result = result
        super().__init__(f"Could not process file: {result.error}")


class RiskReportPipeline:
    """Coordinates variant prioritization, prompt filling and the narrative model."""

    def __init__(
        self,
        *,
        narrator: Optional[BaseNarrator] = None,
        template: Optional[PromptTemplate] = None,
        settings: Optional[FilterSettings] = None,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self.narrator = narrator or MockNarrator()
        self.template = template or PromptTemplate.load()
        self.settings = settings or FilterSettings()
        self.max_bytes = max_bytes

    def extract(self, content: str) -> ExtractionResult:
        result = extract_meaningful_gene_info(content, self.settings)
        if result.ok:
            logger.info(
                "Prioritized %d variants across %d genes", len(result.variants), len(result.genes)
            )
        else:
            logger.warning("Extraction failed: %s", result.error)
        return result

    def analyze(self, content: str, profile: Optional[PatientProfile] = None) -> PredictionResponse:
        result = self.extract(content)
        if not result.ok:
            raise VariantExtractionError(result)

        prompt = self.template.render(result, profile)
        logger.debug("Prompt sent to model:\n%s", prompt)
        report = self.narrator.narrate(prompt)
        logger.info("Received risk report (overall risk: %s)", report.overall_risk_level)
        return PredictionResponse(
            ai_analysis=report,
            processed_variants=list(result.variants),
            identified_genes=list(result.genes),
        )

    def analyze_file(self, path: Path, profile: Optional[PatientProfile] = None) -> PredictionResponse:
        content = read_variant_file(path, max_bytes=self.max_bytes)
        return self.analyze(content, profile)
