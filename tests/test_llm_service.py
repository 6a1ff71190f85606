"""
Narrator tests.

Guards against:
1. A slow or failing LLM call blocking or breaking the analysis
2. The narrator being called without the computed figures in the prompt
"""
import asyncio
import time
from types import SimpleNamespace

from ads_analyzer.services.analysis_service import AnalysisService
from ads_analyzer.services.llm_service import LLMService, build_narrative_prompt, generate_narrative


def _run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


class SlowNarrator:
    def generate(self, context):
        time.sleep(0.3)
        return "too late"


class BrokenNarrator:
    def generate(self, context):
        raise RuntimeError("boom")


class EchoNarrator:
    def __init__(self, text):
        self.text = text

    def generate(self, context):
        return self.text


class FakeMessages:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


CONTEXT = {
    'currency': 'FCFA',
    'businessContext': {'revenueTotal': 20000.0, 'campaignDays': 10.0, 'dailyBudget': 500.0, 'productPrice': 2000.0},
    'stats': {'spendFCFA': 1000, 'cpaFCFA': 200, 'roas': 20.0},
    'campaigns': [{'name': 'C1', 'decision': 'SCALE'}],
    'indicators': [{'key': 'ctr', 'value': '2.50%'}],
}


# ---------------------------------------------------------------------------
# generate_narrative
# ---------------------------------------------------------------------------

def test_no_narrator_returns_none():
    assert _run(generate_narrative(None, CONTEXT, timeout=1)) is None


def test_timeout_returns_none():
    started = time.perf_counter()
    assert _run(generate_narrative(SlowNarrator(), CONTEXT, timeout=0.05)) is None
    assert time.perf_counter() - started < 5


def test_error_returns_none():
    assert _run(generate_narrative(BrokenNarrator(), CONTEXT, timeout=1)) is None


def test_blank_answer_returns_none():
    assert _run(generate_narrative(EchoNarrator("   "), CONTEXT, timeout=1)) is None
    assert _run(generate_narrative(EchoNarrator(None), CONTEXT, timeout=1)) is None


def test_text_is_trimmed():
    assert _run(generate_narrative(EchoNarrator("\nVerdict: rentable\n"), CONTEXT, timeout=1)) == "Verdict: rentable"


# ---------------------------------------------------------------------------
# LLMService
# ---------------------------------------------------------------------------

def test_service_disabled_without_key():
    service = LLMService(api_key="")
    assert service.is_available() is False
    assert service.generate(CONTEXT) is None


def test_service_single_call_with_prompt():
    service = LLMService(api_key="test-key")
    messages = FakeMessages(text="Narrative")
    service.client = SimpleNamespace(messages=messages)

    assert service.generate(CONTEXT) == "Narrative"
    [call] = messages.calls
    assert "C1" in call['messages'][0]['content']


def test_service_swallows_api_errors():
    service = LLMService(api_key="test-key")
    service.client = SimpleNamespace(messages=FakeMessages(error=TimeoutError("slow")))
    assert service.generate(CONTEXT) is None


def test_prompt_carries_business_context_and_figures():
    prompt = build_narrative_prompt(CONTEXT)
    assert "20000.0 FCFA" in prompt
    assert "ROAS: 20.00" in prompt
    assert '"decision": "SCALE"' in prompt


# ---------------------------------------------------------------------------
# AnalysisService.analyze
# ---------------------------------------------------------------------------

def test_analyze_attaches_narrative_after_report():
    rows = [{"Campaign": "C1", "Spend": "1000", "Results": "5", "Clicks": "50", "Impressions": "2000"}]
    context = {"revenueTotal": 20000, "campaignDays": 10, "dailyBudget": 500, "productPrice": 2000}

    report = _run(AnalysisService().analyze(rows, context, narrator=EchoNarrator("ok"), timeout=1))
    assert report['aiNarrative'] == "ok"
    assert report['summary']['verdict'] == 'profitable'

    without = _run(AnalysisService().analyze(rows, context, narrator=None))
    assert without['aiNarrative'] is None
