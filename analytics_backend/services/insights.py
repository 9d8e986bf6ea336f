"""
Insight Synthesizer Adapter.

Turns ProcessedData into the insight text of a report. The primary path asks
an external text-generation service (an InsightSynthesizer) for a JSON
document of the form

    {
      "keyInsights": ["...", "...", "..."],
      "recommendations": ["...", "...", "..."],          # 3 to 6 entries
      "categoryAnalysis": {"bestPerforming": "...", "needsImprovement": "...",
                           "reasoning": "..."},
      "costOptimization": {"currentEfficiency": "...", "improvements": ["..."]}
    }

Any failure on that path (no synthesizer configured, timeout, transport error,
missing JSON, too few insights or recommendations) is logged and replaced by
generate_fallback_insights(), which builds deterministic template text from
ProcessedData alone. InsightAdapter.generate() therefore always returns a
usable InsightResult and never raises for synthesizer problems.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol, Tuple

import httpx
from pydantic import ValidationError

from analytics_backend.core.exceptions import InsightError
from analytics_backend.models.enums import InsightSource
from analytics_backend.models.schemas import (
    AnalyticsQuery,
    CategoryAnalysis,
    CostOptimization,
    InsightResult,
    ProcessedData,
)


logger = logging.getLogger(__name__)


KEY_INSIGHT_COUNT: int = 3
MIN_RECOMMENDATIONS: int = 3
MAX_RECOMMENDATIONS: int = 6

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


# =============================================================================
# Synthesizer Protocol + HTTP Implementation
# =============================================================================


class InsightSynthesizer(Protocol):
    """External text generator used for report insights."""

    async def synthesize(self, prompt: str) -> str:
        """Return the raw response text for an insights prompt."""
        ...


class HttpInsightSynthesizer:
    """
    Insight synthesizer reached through a messages-style HTTP API.

    Sends a single user message and returns the text of the first content
    block of the response.

    Args:
        url: Messages endpoint.
        api_key: API key sent as ``x-api-key``.
        model: Model identifier.
        max_tokens: Token budget of the response.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        model: str = "anthropic.claude-3-5-sonnet-20241022-v2:0",
        max_tokens: int = 2000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def synthesize(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            response = await client.post(self.url, json=payload, headers=self._headers())
            response.raise_for_status()
            body = response.json()

        try:
            return body["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise InsightError(f"Unexpected synthesizer response shape: {e!r}") from e


# =============================================================================
# Prompt Construction
# =============================================================================


def build_insights_prompt(processed: ProcessedData, query: AnalyticsQuery) -> str:
    """
    Build the analysis prompt sent to the synthesizer.

    Only aggregates are included, never raw records.
    """
    topics = processed.topics
    prompts = processed.prompts
    media = processed.media
    media_categories = {k: v.model_dump() for k, v in media.byCategory.items()}

    return f"""
Analyze this content automation platform data for a {query.reportType.value} report and provide actionable insights:

TOPICS DATA:
- Total topics: {topics.total}
- Category breakdown: {json.dumps(dict(topics.byCategory))}
- Urgency distribution: {json.dumps(dict(topics.byUrgency))}
- Average search volume: {topics.searchVolumeStats.average}
- Conversion rates (%): {json.dumps(topics.conversionRates.model_dump())}

PROMPTS DATA:
- Total prompts: {prompts.total}
- Average confidence: {prompts.averageConfidence}%
- Quality distribution: {json.dumps(prompts.qualityDistribution.model_dump())}

MEDIA DATA:
- Total media items: {media.total}
- Total cost: ${media.totalCost}
- Average views: {media.performance.averageViews}
- Cost per view: ${media.roi.costPerView}
- Cost per watch hour: ${media.roi.costPerHour}
- Category performance: {json.dumps(media_categories)}

ANALYSIS REQUIRED:
1. What are the top 3 key insights from this data?
2. Which categories are performing best and why?
3. What optimization opportunities exist?
4. What are the biggest cost efficiency improvements possible?
5. What content strategy recommendations would improve ROI?
6. What topics should be prioritized for future content?

Respond in JSON format with:
{{
  "keyInsights": ["insight1", "insight2", "insight3"],
  "recommendations": ["rec1", "rec2", "rec3", "rec4", "rec5"],
  "categoryAnalysis": {{
    "bestPerforming": "category",
    "needsImprovement": "category",
    "reasoning": "explanation"
  }},
  "costOptimization": {{
    "currentEfficiency": "assessment",
    "improvements": ["improvement1", "improvement2"]
  }}
}}
"""


# =============================================================================
# Response Parsing
# =============================================================================


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_insight_response(text: str) -> InsightResult:
    """
    Extract and validate the insight document from synthesizer output.

    Surrounding prose is ignored. Extra key insights beyond three and extra
    recommendations beyond six are dropped.

    Raises:
        InsightError: No JSON object found, invalid JSON, fewer than three
            key insights or fewer than three recommendations.
    """
    match = _JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise InsightError("Synthesizer response contained no JSON object")

    try:
        document = json.loads(match.group(0))
    except ValueError as e:
        raise InsightError(f"Synthesizer response was not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise InsightError("Synthesizer response JSON was not an object")

    key_insights = _string_list(document.get("keyInsights"))
    recommendations = _string_list(document.get("recommendations"))
    if len(key_insights) < KEY_INSIGHT_COUNT:
        raise InsightError(f"Expected {KEY_INSIGHT_COUNT} key insights, got {len(key_insights)}")
    if len(recommendations) < MIN_RECOMMENDATIONS:
        raise InsightError(
            f"Expected at least {MIN_RECOMMENDATIONS} recommendations, got {len(recommendations)}"
        )

    try:
        return InsightResult(
            keyInsights=key_insights[:KEY_INSIGHT_COUNT],
            recommendations=recommendations[:MAX_RECOMMENDATIONS],
            categoryAnalysis=CategoryAnalysis.model_validate(document.get("categoryAnalysis") or {}),
            costOptimization=CostOptimization.model_validate(document.get("costOptimization") or {}),
        )
    except ValidationError as e:
        raise InsightError(f"Synthesizer response failed validation: {e}") from e


# =============================================================================
# Deterministic Fallback
# =============================================================================


def _rank_media_categories(processed: ProcessedData) -> List[str]:
    """Media categories by average views, best first; ties broken by name."""
    by_category = processed.media.byCategory
    return sorted(by_category, key=lambda c: (-by_category[c].averageViews, c))


def generate_fallback_insights(processed: ProcessedData) -> InsightResult:
    """
    Build insight text from ProcessedData with fixed templates.

    No network access and no randomness: the same ProcessedData always yields
    the same InsightResult.
    """
    topics = processed.topics
    prompts = processed.prompts
    media = processed.media
    roi = media.roi

    key_insights = [
        f"Discovered {topics.total} topics with "
        f"{topics.conversionRates.mediaCreated:.1f}% media conversion rate",
        f"Average prompt confidence is {prompts.averageConfidence:.1f}% with "
        f"{prompts.qualityDistribution.high} high-quality prompts",
        f"Cost efficiency: ${roi.costPerView:.4f} per view across {media.total} media items",
    ]

    recommendations = [
        "Focus on high-urgency topics for better conversion rates",
        "Improve prompt quality to increase confidence scores",
        "Optimize media production costs for better ROI",
        "Prioritize categories with highest view counts",
        "Implement A/B testing for prompt variations",
    ]

    ranked = _rank_media_categories(processed)
    if ranked:
        best, worst = ranked[0], ranked[-1]
        category_analysis = CategoryAnalysis(
            bestPerforming=best,
            needsImprovement=worst,
            reasoning=(
                f"{best} averages {media.byCategory[best].averageViews:.0f} views per item "
                f"versus {media.byCategory[worst].averageViews:.0f} for {worst}"
            ),
        )
    else:
        category_analysis = CategoryAnalysis(
            reasoning="No media items were published in the selected range"
        )

    if media.total:
        efficiency = (
            f"${roi.costPerView:.4f} per view and ${roi.costPerHour:.2f} per watch hour "
            f"against an estimated ${roi.revenueEstimate:.2f} revenue"
        )
        improvements = [
            "Reuse high-confidence prompts to spread generation cost",
            "Reduce production spend in categories with below-average views",
        ]
        if ranked:
            improvements.append(f"Shift production toward {ranked[0]} content")
    else:
        efficiency = "No media production cost in the selected range"
        improvements = ["Convert high-urgency topics into media items to start measuring ROI"]

    return InsightResult(
        keyInsights=key_insights,
        recommendations=recommendations,
        categoryAnalysis=category_analysis,
        costOptimization=CostOptimization(
            currentEfficiency=efficiency,
            improvements=improvements,
        ),
    )


# =============================================================================
# Adapter
# =============================================================================


class InsightAdapter:
    """
    Wraps an optional InsightSynthesizer with the deterministic fallback.

    Args:
        synthesizer: External synthesizer, or None to always use the fallback.
        timeout: Default time budget in seconds for one synthesizer call.
    """

    def __init__(
        self,
        synthesizer: Optional[InsightSynthesizer] = None,
        timeout: float = 30.0,
    ) -> None:
        self._synthesizer = synthesizer
        self._timeout = timeout

    async def generate(
        self,
        processed: ProcessedData,
        query: AnalyticsQuery,
        timeout: Optional[float] = None,
    ) -> Tuple[InsightResult, InsightSource]:
        """
        Produce the insights of a report.

        Args:
            processed: Aggregates of the report.
            query: The report's query (report type is included in the prompt).
            timeout: Optional override, e.g. the remaining report deadline.
                The effective budget is the smaller of this and the default.

        Returns:
            (InsightResult, InsightSource.SYNTHESIZER) on success, otherwise
            (fallback InsightResult, InsightSource.FALLBACK).
        """
        if self._synthesizer is None:
            return generate_fallback_insights(processed), InsightSource.FALLBACK

        budget = self._timeout if timeout is None else min(self._timeout, timeout)
        try:
            if budget <= 0:
                raise InsightError("No time left for insight synthesis")
            prompt = build_insights_prompt(processed, query)
            text = await asyncio.wait_for(self._synthesizer.synthesize(prompt), timeout=budget)
            return parse_insight_response(text), InsightSource.SYNTHESIZER
        except asyncio.TimeoutError:
            logger.warning(f"Insight synthesizer timed out after {budget:.3f}s; using fallback")
        except Exception as e:
            logger.warning(f"Insight synthesizer failed ({e.__class__.__name__}: {e}); using fallback")

        return generate_fallback_insights(processed), InsightSource.FALLBACK
