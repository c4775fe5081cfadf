"""Loading and filling the disease-risk prompt template."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from .models import ExtractionResult, PatientProfile
from .variants import format_variant_details

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = Path(__file__).resolve().parent / "templates" / "risk_prompt.txt"
PROMPT_ENV_VAR = "GENEGUARD_PROMPT"
NO_GENES_IDENTIFIED = "not specifically identified from these filtered variants"


class PromptError(RuntimeError):
    """Raised when the prompt template cannot be loaded or filled."""


class PromptTemplate:
    """A report prompt with ``${name}`` placeholders."""

    PLACEHOLDERS = ("age", "gender", "variantSummary", "geneList", "detailedVariantInfo")

    def __init__(self, text: str) -> None:
        if not text or not text.strip():
            msg = "Prompt template is empty"
            raise PromptError(msg)
        self.text = text

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "PromptTemplate":
        """Load the template from ``GENEGUARD_PROMPT``, ``path`` or the packaged default."""

        inline = os.getenv(PROMPT_ENV_VAR)
        if inline:
            logger.debug("Using prompt template from %s", PROMPT_ENV_VAR)
            return cls(inline)

        resolved = Path(path or DEFAULT_PROMPT).expanduser().resolve()
        if not resolved.exists():
            msg = f"Prompt template not found: {resolved}"
            raise PromptError(msg)
        logger.debug("Loading prompt template from %s", resolved)
        return cls(resolved.read_text(encoding="utf-8"))

    def fill(self, values: Dict[str, str]) -> str:
        filled = self.text
        for name in self.PLACEHOLDERS:
            if name in values:
                filled = filled.replace("${" + name + "}", values[name])
        return filled

    def render(self, result: ExtractionResult, profile: Optional[PatientProfile] = None) -> str:
        if not result.ok or not result.variant_summary:
            msg = f"Cannot build a prompt from a failed extraction: {result.error}"
            raise PromptError(msg)
        profile = profile or PatientProfile()
        return self.fill(
            {
                "age": str(profile.age),
                "gender": profile.gender,
                "variantSummary": result.variant_summary,
                "geneList": ", ".join(result.genes) if result.genes else NO_GENES_IDENTIFIED,
                "detailedVariantInfo": format_variant_details(result.variants),
            }
        )


__all__ = ["PromptError", "PromptTemplate"]
