from fastapi import APIRouter, HTTPException

from card_builder.validator.preflight import run_preflight
from web.backend.models.requests import PreflightRequest, PreflightResponse

router = APIRouter()


@router.post("", response_model=PreflightResponse, response_model_by_alias=True)
async def preflight(request: PreflightRequest):
    """Run preflight on a design; blocking problems are in ``errors``."""
    try:
        spec = request.build(request.design)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return run_preflight(spec, request.design).to_dict()
