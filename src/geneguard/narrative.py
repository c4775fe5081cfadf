"""Clients that turn a filled report prompt into a structured risk report."""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Sequence

try:  # pragma: no cover - optional dependency
    import google.generativeai as genai
except ImportError:  # pragma: no cover - optional dependency
    genai = None  # type: ignore

try:  # pragma: no cover - optional dependency
    import anthropic
except ImportError:  # pragma: no cover - optional dependency
    anthropic = None  # type: ignore

try:  # pragma: no cover - optional dependency
    import openai
except ImportError:  # pragma: no cover - optional dependency
    openai = None  # type: ignore

try:  # pragma: no cover - optional dependency
    from groq import Groq
except ImportError:  # pragma: no cover - optional dependency
    Groq = None  # type: ignore

from .models import RiskReport

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a clinical genetics assistant. Answer with a single JSON object describing "
    "disease risk for the supplied variants."
)

GEMINI_MODEL_ENV_VAR = "GENEGUARD_GEMINI_MODEL"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
GEMINI_MODEL_PREFERENCE: Sequence[str] = (
    "gemini-1.5-flash",
    "gemini-1.5-flash-latest",
    "gemini-1.5-pro",
    "gemini-1.5-pro-latest",
    "gemini-1.0-pro",
    "gemini-pro",
)
GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.5,
    "top_k": 1,
    "top_p": 1,
    "max_output_tokens": 3000,
}

_FENCED_OR_OBJECT = re.compile(r"```json\s*([\s\S]*?)\s*```|(\{[\s\S]*\})")


class NarrativeError(RuntimeError):
    """Raised when the narrative model cannot produce a usable reply."""


class ReportParseError(NarrativeError):
    """Raised when the model reply does not contain a JSON object."""


def parse_report_json(text: str) -> Dict[str, Any]:
    """Extract the JSON object from a model reply.

    A ```json fenced block is preferred, then the outermost ``{...}`` span,
    then the reply as a whole.
    """

    match = _FENCED_OR_OBJECT.search(text or "")
    if match:
        candidate = match.group(1) or match.group(2)
    else:
        logger.warning("No JSON block found in model reply; parsing raw text")
        candidate = text
    try:
        payload = json.loads(candidate)
    except (TypeError, json.JSONDecodeError) as exc:
        logger.error("Model reply JSON parsing failed: %s", exc)
        logger.debug("Reply text: %s", text)
        msg = "Failed to parse AI response. The AI returned non-JSON or malformed JSON."
        raise ReportParseError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Failed to parse AI response. Expected a JSON object."
        raise ReportParseError(msg)
    return payload


class BaseNarrator:
    """Protocol that all narrative generators must satisfy."""

    def generate(self, prompt: str) -> str:
        raise NotImplementedError

    def narrate(self, prompt: str) -> RiskReport:
        text = self.generate(prompt)
        if not text or not text.strip():
            msg = "AI returned an empty text response or text could not be extracted."
            raise NarrativeError(msg)
        logger.debug("Raw model reply: %s", text)
        return RiskReport.from_payload(parse_report_json(text))


def _resolve_model_name(model: Optional[str]) -> str:
    if model:
        return model
    return os.getenv(GEMINI_MODEL_ENV_VAR) or DEFAULT_GEMINI_MODEL


def _normalise_model_name(model_name: str) -> str:
    """Return the canonical Gemini model identifier without API prefixes."""

    return model_name.split("/")[-1]


def _list_available_models() -> List[str]:
    """Return Gemini model identifiers that support generateContent.

    Returns an empty list if the SDK is unavailable or the API call fails.
    """

    if genai is None:  # pragma: no cover - optional dependency
        return []

    try:  # pragma: no cover - network/API dependent
        models = genai.list_models()
    except Exception:  # pragma: no cover - network/API dependent
        logger.debug("Unable to list Gemini models", exc_info=True)
        return []

    available: List[str] = []
    for model in models:
        if "generateContent" in getattr(model, "supported_generation_methods", []):
            available.append(_normalise_model_name(getattr(model, "name", "")))
    return sorted(set(filter(None, available)))


def _select_preferred_model(available_models: Sequence[str]) -> Optional[str]:
    available_set = set(available_models)
    for preferred in GEMINI_MODEL_PREFERENCE:
        if preferred in available_set:
            return preferred
    return available_models[0] if available_models else None


def _response_text(response: Any) -> Optional[str]:
    try:
        text = response.text
    except (AttributeError, ValueError):
        text = None
    if text:
        return text
    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        parts = getattr(getattr(candidate, "content", None), "parts", None) or []
        for part in parts:
            if getattr(part, "text", None):
                return part.text
    return None


class GeminiNarrator(BaseNarrator):
    """Narrative generator backed by Google's Gemini API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        if genai is None:  # pragma: no cover - optional dependency
            msg = "google-generativeai is not installed. Install it with `pip install google-generativeai`."
            raise ImportError(msg)

        api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not api_key:
            msg = "API key required. Provide via api_key parameter or GEMINI_API_KEY environment variable."
            raise ValueError(msg)

        genai.configure(api_key=api_key)
        self.model_name = _resolve_model_name(model)
        requested = bool(model or os.getenv(GEMINI_MODEL_ENV_VAR))

        available_models = _list_available_models()
        if available_models and self.model_name not in available_models:
            if requested:
                msg = (
                    f"Gemini model '{self.model_name}' is not available for your API key. "
                    f"Available models: {', '.join(available_models)}"
                )
                raise NarrativeError(msg)

            fallback = _select_preferred_model(available_models)
            logger.warning(
                "Default Gemini model '%s' unavailable; falling back to '%s'", self.model_name, fallback
            )
            self.model_name = fallback

        try:
            self.model = genai.GenerativeModel(self.model_name, generation_config=GENERATION_CONFIG)
        except Exception as exc:  # pragma: no cover - network/API dependent
            msg = (
                f"Failed to initialise Gemini model '{self.model_name}'. "
                f"Set {GEMINI_MODEL_ENV_VAR} or pass model='<model-name>'."
            )
            raise NarrativeError(msg) from exc
        logger.info("Initialized GeminiNarrator with model %s", self.model_name)

    def generate(self, prompt: str) -> str:
        try:
            response = self.model.generate_content(prompt)
        except Exception as exc:
            logger.error("Gemini API error: %s", exc)
            raise NarrativeError(f"Gemini generation failed: {exc}") from exc
        text = _response_text(response)
        if not text:
            logger.error("Gemini reply contained no text: %r", response)
        return text or ""


class ClaudeNarrator(BaseNarrator):
    """Narrative generator using Anthropic's Claude API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 3000,
    ) -> None:
        if anthropic is None:
            msg = "anthropic package not installed. Install it with `pip install anthropic`."
            raise ImportError(msg)

        if not api_key:
            api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            msg = "API key required. Provide via api_key parameter or ANTHROPIC_API_KEY environment variable."
            raise ValueError(msg)

        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        logger.info("Initialized ClaudeNarrator with model %s", model)

    def generate(self, prompt: str) -> str:
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as exc:
            logger.error("Claude API error: %s", exc)
            raise NarrativeError(f"Claude generation failed: {exc}") from exc
        return "".join(getattr(block, "text", "") for block in message.content)


class _ChatCompletionsNarrator(BaseNarrator):
    """Shared request logic for OpenAI-compatible chat completion clients."""

    provider = ""

    def __init__(self, client: Any, model: str, temperature: float) -> None:
        self.client = client
        self.model = model
        self.temperature = temperature
        logger.info("Initialized %s with model %s", type(self).__name__, model)

    def generate(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            logger.error("%s API error: %s", self.provider, exc)
            raise NarrativeError(f"{self.provider} generation failed: {exc}") from exc
        return response.choices[0].message.content or ""


class OpenAINarrator(_ChatCompletionsNarrator):
    """Narrative generator using OpenAI's chat completions API."""

    provider = "OpenAI"

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini", temperature: float = 0.5) -> None:
        if openai is None:
            msg = "openai package not installed. Install it with `pip install openai`."
            raise ImportError(msg)

        if not api_key:
            api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            msg = "API key required. Provide via api_key parameter or OPENAI_API_KEY environment variable."
            raise ValueError(msg)

        super().__init__(openai.OpenAI(api_key=api_key), model, temperature)


class GroqNarrator(_ChatCompletionsNarrator):
    """Narrative generator using Groq's OpenAI-compatible inference API.

    Free tier: 30 requests/minute.
    """

    provider = "Groq"

    def __init__(
        self, api_key: Optional[str] = None, model: str = "llama-3.3-70b-versatile", temperature: float = 0.5
    ) -> None:
        if Groq is None:
            msg = "groq package not installed. Install it with `pip install groq`."
            raise ImportError(msg)

        if not api_key:
            api_key = os.getenv("GROQ_API_KEY")
        if not api_key:
            msg = "API key required. Provide via api_key parameter or GROQ_API_KEY environment variable."
            raise ValueError(msg)

        super().__init__(Groq(api_key=api_key), model, temperature)


DEFAULT_MOCK_REPORT: Dict[str, Any] = {
    "overallRiskLevel": "Moderate",
    "summary": "A rare missense variant in BRCA1 was identified.",
    "diseaseAssociations": [
        {
            "name": "Hereditary breast and ovarian cancer syndrome",
            "description": "BRCA1 loss of function increases breast and ovarian cancer risk.",
            "inheritance": "Autosomal dominant",
            "confidence": "Medium",
        }
    ],
    "geneInterpretations": [
        {
            "name": "BRCA1",
            "function": "DNA double-strand break repair",
            "variantImplication": "Missense change of uncertain significance",
        }
    ],
    "recommendation": "Discuss the findings with a genetic counselor.",
    "limitations": "Based on VCF annotations only; not a clinical diagnosis.",
}


class MockNarrator(BaseNarrator):
    """Offline narrator used for tests and local development."""

    def __init__(self, canned_response: Optional[Dict[str, Any]] = None, *, raw_text: Optional[str] = None) -> None:
        self.canned_response = canned_response or DEFAULT_MOCK_REPORT
        self.raw_text = raw_text
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.raw_text is not None:
            return self.raw_text
        return "```json\n" + json.dumps(self.canned_response, indent=2) + "\n```"


PROVIDERS = ("gemini", "anthropic", "openai", "groq")


def build_narrator(provider: str = "gemini", api_key: Optional[str] = None, model: Optional[str] = None) -> BaseNarrator:
    """Instantiate the narrator for ``provider``."""

    provider = provider.lower()
    if provider == "gemini":
        return GeminiNarrator(api_key=api_key, model=model)
    if provider == "anthropic":
        return ClaudeNarrator(api_key=api_key, **({"model": model} if model else {}))
    if provider == "openai":
        return OpenAINarrator(api_key=api_key, **({"model": model} if model else {}))
    if provider == "groq":
        return GroqNarrator(api_key=api_key, **({"model": model} if model else {}))
    raise ValueError(f"Unsupported provider: {provider}")
