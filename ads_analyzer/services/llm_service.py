"""
LLM Service for the analysis narrative
Turns the computed report into a media-buyer style commentary
"""
import asyncio
import json
from typing import Dict, Optional, Protocol

from anthropic import Anthropic

from ads_analyzer.config import get_settings
from ads_analyzer.utils.logger import log

settings = get_settings()


class InsightNarrator(Protocol):
    """Anything that can turn a prepared summary into text (or None)"""

    def generate(self, context: Dict) -> Optional[str]:
        ...


class LLMService:
    """
    Narrative generation using Claude.

    Best effort: one attempt, no retries, and every failure returns None so
    the numeric report is never affected.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.model = model or settings.llm_model
        self.enabled = bool(settings.enable_llm_insights and api_key)
        self.client = None

        if self.enabled:
            try:
                self.client = Anthropic(
                    api_key=api_key,
                    timeout=settings.narrative_timeout_seconds,
                    max_retries=0,
                )
                log.info("LLM Service initialized with Claude")
            except Exception as e:
                log.error(f"Failed to initialize Anthropic client: {str(e)}")
                self.enabled = False
        else:
            log.info("LLM narrative disabled (no API key or feature disabled)")

    def is_available(self) -> bool:
        """Check if LLM service is available"""
        return self.enabled

    def generate(self, context: Dict) -> Optional[str]:
        """
        Generate the narrative for an analysis report
        """
        if not self.enabled:
            return None

        try:
            prompt = build_narrative_prompt(context)

            response = self.client.messages.create(
                model=self.model,
                max_tokens=settings.llm_max_tokens,
                temperature=0.3,
                system="You are a senior media buyer reviewing Facebook Ads results for an African e-commerce business.",
                messages=[{"role": "user", "content": prompt}]
            )

            narrative = response.content[0].text.strip() if response.content else ""
            if not narrative:
                log.warning("LLM returned an empty narrative")
                return None

            log.info("Generated analysis narrative via LLM")
            return narrative

        except Exception as e:
            log.error(f"Error generating analysis narrative: {str(e)}")
            return None


def build_narrative_prompt(context: Dict) -> str:
    business = context.get('businessContext', {})
    stats = context.get('stats', {})
    currency = context.get('currency', 'FCFA')

    return f"""Analyse this ad account the way an experienced human would.

Business context:
- Total revenue: {business.get('revenueTotal')} {currency}
- Campaign length: {business.get('campaignDays')} days
- Daily budget: {business.get('dailyBudget')} {currency}
- Product price: {business.get('productPrice')} {currency}

Computed summary:
- Spend: {stats.get('spendFCFA')} {currency}
- ROAS: {stats.get('roas', 0):.2f}
- CPA: {stats.get('cpaFCFA')} {currency}

Campaigns:
{json.dumps(context.get('campaigns', []), indent=2, default=str)}

Indicators:
{json.dumps(context.get('indicators', []), indent=2, default=str)}

Give a clear analysis, a verdict, the main risks and an action plan (3-5 actions).
"""


async def generate_narrative(
    narrator: Optional[InsightNarrator],
    context: Dict,
    timeout: float,
) -> Optional[str]:
    """
    Run the (blocking) narrator in a worker thread, bounded by `timeout`.

    Missing narrator, timeout and errors all give None.
    """
    if narrator is None:
        return None

    try:
        result = await asyncio.wait_for(asyncio.to_thread(narrator.generate, context), timeout=timeout)
    except asyncio.TimeoutError:
        log.warning(f"Narrative generation timed out after {timeout}s")
        return None
    except Exception as e:
        log.error(f"Narrative generation failed: {str(e)}")
        return None

    if not isinstance(result, str) or not result.strip():
        return None
    return result.strip()
