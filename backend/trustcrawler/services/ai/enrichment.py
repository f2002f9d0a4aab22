"""
Text Intelligence Adapter.

Wraps a TextIntelligence provider for the pipeline:
- Builds a bounded prompt (content window hard-truncated)
- Strips code fences and parses the first JSON object in the response
- Returns a tagged result, Ok(value) or Fallback(reason, value)

The adapter never raises. A missing provider, a provider error, an empty
response or unparseable JSON all produce the deterministic fallback value.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

import structlog

from trustcrawler.core.constants import UNKNOWN_INDUSTRY
from trustcrawler.core.models import QualityAnalysis, RiskLevel, Translation
from trustcrawler.services.ai.interface import TextIntelligence
from trustcrawler.services.ai.prompts import (
    ENRICHMENT_PROMPT,
    RISK_PROMPT,
    TRANSLATION_LANGUAGES,
    truncate_content,
)

logger = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Tagged Result
# =============================================================================


@dataclass(frozen=True)
class Ok(Generic[T]):
    """The provider answered with a usable JSON object."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """The provider could not be used; value is the deterministic default."""
    reason: str
    value: T

    @property
    def ok(self) -> bool:
        return False


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SiteContext:
    """What the adapter knows about a site when prompting."""
    content: str
    company_name: str | None = None
    website: str | None = None
    country_code: str | None = None
    registry_status: str | None = None
    emails: list[str] = field(default_factory=list)
    has_ssl: bool = False


@dataclass
class EnrichmentData:
    description: str | None = None
    industry_category: str = UNKNOWN_INDUSTRY
    services: list[str] = field(default_factory=list)
    products: list[str] = field(default_factory=list)
    search_keywords: list[str] = field(default_factory=list)
    translations: dict[str, Translation] = field(default_factory=dict)
    risk_signals: list[str] = field(default_factory=list)

    @classmethod
    def fallback(cls) -> "EnrichmentData":
        return cls()


@dataclass
class RiskAssessment:
    is_scam: bool = False
    risk_level: RiskLevel = RiskLevel.LOW
    credibility_score: int = 50
    red_flags: list[str] = field(default_factory=list)
    trust_signals: list[str] = field(default_factory=list)
    summary: str | None = None
    assessed: bool = False  # False for the neutral fallback

    @classmethod
    def neutral(cls) -> "RiskAssessment":
        return cls()

    def to_quality_analysis(self, has_ssl: bool, professional_email: bool) -> QualityAnalysis:
        return QualityAnalysis(
            has_ssl=has_ssl,
            professional_email=professional_email,
            is_scam=self.is_scam,
            risk_level=self.risk_level,
            credibility_score=self.credibility_score,
            red_flags=list(self.red_flags),
            trust_signals=list(self.trust_signals),
            ai_summary=self.summary,
            analyzed_at=datetime.now(timezone.utc),
        )


EnrichmentResult = Ok[EnrichmentData] | Fallback[EnrichmentData]
RiskResult = Ok[RiskAssessment] | Fallback[RiskAssessment]


# =============================================================================
# Response Parsing
# =============================================================================

CODE_FENCE_PATTERN = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the whole response is fenced."""
    match = CODE_FENCE_PATTERN.match(text)
    return match.group(1).strip() if match else text.strip()


def parse_json_object(text: str | None) -> dict[str, Any] | None:
    """Parse a JSON object out of a model response, or None."""
    if not text or not text.strip():
        return None
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        # Prose around the object: take the outermost braces
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def _str_list(value: Any, limit: int) -> list[str]:
    if isinstance(value, str):
        value = re.split(r"[,;\n]", value)
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in items:
            items.append(item.strip())
    return items[:limit]


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _translations(value: Any) -> dict[str, Translation]:
    if not isinstance(value, dict):
        return {}
    translations: dict[str, Translation] = {}
    for lang, entry in value.items():
        if not isinstance(lang, str) or not isinstance(entry, dict):
            continue
        description = _optional_str(entry.get("description"))
        if not description:
            continue
        translations[lang.lower()[:5]] = Translation(
            description=description,
            services=_str_list(entry.get("services"), 8),
        )
    return translations


def _risk_level(value: Any) -> RiskLevel:
    if isinstance(value, str):
        try:
            return RiskLevel(value.strip().upper())
        except ValueError:
            pass
    return RiskLevel.MEDIUM


def _score(value: Any, default: int = 50) -> int:
    try:
        return max(0, min(100, int(float(value))))
    except (TypeError, ValueError):
        return default


# =============================================================================
# Adapter
# =============================================================================


class TextIntelligenceAdapter:
    """Defensive wrapper around a TextIntelligence provider."""

    def __init__(self, provider: TextIntelligence | None, max_content_chars: int = 5000):
        self.provider = provider
        self.max_content_chars = max_content_chars
        self.log = logger.bind(component="TextIntelligenceAdapter")

    async def _ask(self, prompt: str) -> tuple[dict[str, Any] | None, str | None]:
        """Returns (parsed object, None) or (None, fallback reason)."""
        if self.provider is None:
            return None, "provider_unavailable"
        try:
            raw = await self.provider.generate(prompt)
        except Exception as e:
            # Provider boundary: nothing past this point may raise
            self.log.warning("Provider call failed", error=str(e)[:300], error_type=type(e).__name__)
            return None, "provider_error"

        if not raw or not raw.strip():
            return None, "empty_response"
        parsed = parse_json_object(raw)
        if parsed is None:
            self.log.info("Response was not a JSON object", preview=raw[:120])
            return None, "invalid_json"
        return parsed, None

    async def enrich(self, context: SiteContext) -> EnrichmentResult:
        """Describe and categorize a business from its website content."""
        prompt = ENRICHMENT_PROMPT.format(
            company_name=context.company_name or "unknown",
            website=context.website or "unknown",
            country_code=context.country_code or "unknown",
            languages=", ".join(TRANSLATION_LANGUAGES),
            content=truncate_content(context.content, self.max_content_chars),
        )
        parsed, reason = await self._ask(prompt)
        if parsed is None:
            return Fallback(reason=reason or "unknown", value=EnrichmentData.fallback())

        data = EnrichmentData(
            description=_optional_str(parsed.get("description")),
            industry_category=_optional_str(parsed.get("industry_category")) or UNKNOWN_INDUSTRY,
            services=_str_list(parsed.get("services"), 8),
            products=_str_list(parsed.get("products"), 8),
            search_keywords=_str_list(parsed.get("search_keywords"), 10),
            translations=_translations(parsed.get("translations")),
            risk_signals=_str_list(parsed.get("risk_signals"), 10),
        )
        return Ok(value=data)

    async def assess_risk(self, context: SiteContext) -> RiskResult:
        """Judge whether a site looks legitimate."""
        prompt = RISK_PROMPT.format(
            company_name=context.company_name or "unknown",
            website=context.website or "unknown",
            registry_status=context.registry_status or "unknown",
            has_ssl="yes" if context.has_ssl else "no",
            emails=", ".join(context.emails) or "none found",
            content=truncate_content(context.content, self.max_content_chars),
        )
        parsed, reason = await self._ask(prompt)
        if parsed is None:
            return Fallback(reason=reason or "unknown", value=RiskAssessment.neutral())

        assessment = RiskAssessment(
            is_scam=parsed.get("is_scam") is True,
            risk_level=_risk_level(parsed.get("risk_level")),
            credibility_score=_score(parsed.get("credibility_score")),
            red_flags=_str_list(parsed.get("red_flags"), 10),
            trust_signals=_str_list(parsed.get("trust_signals"), 10),
            summary=_optional_str(parsed.get("summary")),
            assessed=True,
        )
        return Ok(value=assessment)
