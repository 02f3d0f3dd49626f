"""Citation analysis and content performance prediction endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from citelens.application.schemas import (
    AnalysisResponse,
    PerformancePredictionResponse,
    PredictRequest,
)
from citelens.application.services import AnalysisService, PredictionService
from citelens.infrastructure.dependencies import get_analysis_service, get_prediction_service
from citelens.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/analysis", tags=["Analysis"])


@router.post("/citation/{citation_id}", response_model=AnalysisResponse)
async def analyze_citation(
    citation_id: int,
    service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    """Run (or re-run) the analysis pipeline for a citation."""
    try:
        analysis = await service.analyze_citation(citation_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return AnalysisResponse.model_validate(analysis, from_attributes=True)


@router.get("/citation/{citation_id}", response_model=AnalysisResponse)
async def get_analysis(
    citation_id: int,
    service: AnalysisService = Depends(get_analysis_service),
) -> AnalysisResponse:
    """Retrieve the stored analysis for a citation."""
    analysis = await service.get_analysis(citation_id)
    if analysis is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No analysis stored for citation '{citation_id}'",
        )
    return AnalysisResponse.model_validate(analysis, from_attributes=True)


@router.post("/predict", response_model=PerformancePredictionResponse)
async def predict_performance(
    data: PredictRequest,
    service: PredictionService = Depends(get_prediction_service),
) -> PerformancePredictionResponse:
    """Estimate how likely the content is to be cited for the target query."""
    try:
        prediction = await service.predict_performance(data.content, data.target_query)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return PerformancePredictionResponse.model_validate(prediction, from_attributes=True)
