"""
Ad-Spend Analysis API

Upload-and-analyze endpoint for exported ad reports.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional

from ads_analyzer.config import get_settings
from ads_analyzer.services.analysis_service import AnalysisService
from ads_analyzer.services.errors import AnalysisInputError
from ads_analyzer.services.llm_service import InsightNarrator, LLMService
from ads_analyzer.utils.logger import log

router = APIRouter(tags=["analyzer"])

_llm_service: Optional[LLMService] = None


class AnalyzeRequest(BaseModel):
    """Shape checks happen in the service so that they return 400, not 422"""
    model_config = ConfigDict(populate_by_name=True)

    raw_data: Optional[Any] = Field(default=None, alias="rawData")
    business_context: Optional[Dict[str, Any]] = Field(default=None, alias="businessContext")


def get_narrator() -> Optional[InsightNarrator]:
    """Narrator dependency; None when no LLM is configured"""
    global _llm_service
    if _llm_service is None:
        _llm_service = LLMService()
    return _llm_service if _llm_service.is_available() else None


def get_analysis_service() -> AnalysisService:
    return AnalysisService()


@router.post("/analyze")
async def analyze_ads(
    request: AnalyzeRequest,
    service: AnalysisService = Depends(get_analysis_service),
    narrator: Optional[InsightNarrator] = Depends(get_narrator),
):
    """
    Analyze an ad export against the declared business context.

    Returns:
    - Verdict and global decision
    - Campaign and ad-set buckets with SCALE / OPTIMISER / STOP decisions
    - KPI indicators, conclusions and action plan
    - Detected column mapping (metadata.fieldMap)
    - Optional AI narrative
    """
    try:
        report = await service.analyze(
            request.raw_data,
            request.business_context,
            narrator=narrator,
            timeout=get_settings().narrative_timeout_seconds,
        )
        # Rendered here so a non-JSON value still gets the error body below
        return JSONResponse(content=report)

    except AnalysisInputError as e:
        log.warning(f"Rejected analysis request: {str(e)}")
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    except Exception as e:
        log.exception(f"Error analyzing ad data: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Unexpected error during analysis."},
        )


@router.get("/currencies")
async def get_currencies():
    """Static conversion table used to bring spend into the base currency"""
    settings = get_settings()
    return {
        "success": True,
        "data": {
            "base_currency": settings.base_currency,
            "rates": settings.currency_rates,
        }
    }
