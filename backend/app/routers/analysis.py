"""
backend/app/routers/analysis.py

Purpose:
    POST /analyze: Romanian match analysis for one fixture. The legacy path
    /api/analiza is kept for the original web client.

Dependencies:
    - app.services.analysis_service
    - app.services.auth_service
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.errors import BadRequest
from app.models.analysis import AnalysisRequest, AnalysisResponse, ErrorResponse
from app.services.analysis_service import AnalysisService
from app.services.auth_service import require_internal_key

router = APIRouter(tags=["analysis"])

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 500, 502, 504)
}


def get_analysis_service(request: Request) -> AnalysisService:
    return request.app.state.analysis_service


async def _read_analysis_request(request: Request) -> AnalysisRequest:
    try:
        body = await request.json()
    except ValueError:
        raise BadRequest("Invalid JSON body")
    if not isinstance(body, dict):
        raise BadRequest("Invalid JSON body")
    try:
        return AnalysisRequest.model_validate(body)
    except ValidationError as exc:
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        raise BadRequest("Date incomplete", debug={"fields": fields})


@router.post("/analyze", response_model=AnalysisResponse, responses=_ERROR_RESPONSES)
@router.post("/api/analiza", response_model=AnalysisResponse, include_in_schema=False)
async def analyze(
    request: Request,
    _auth: None = Depends(require_internal_key),
    service: AnalysisService = Depends(get_analysis_service),
):
    """Generate (or serve from cache) the analysis for one fixture."""
    service.ensure_configured()
    payload = await _read_analysis_request(request)
    result = await service.analyze(payload)
    request.state.analysis_cache = "hit" if result.cached else "miss"
    return JSONResponse(
        {"analysis": result.text},
        headers={"Cache-Control": "public, max-age=60"},
    )
