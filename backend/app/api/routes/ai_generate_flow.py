"""AI flow generation route."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_flow_generator, require_user_id
from app.api.schemas.flow_generation import (
    FlowGenerationErrorResponse,
    FlowGenerationResponse,
    GenerationMetadata,
    GenerationRequest,
)
from app.core.context import bind_user_id
from app.services.flow_generator import FlowGenerator

router = APIRouter()

PROMPT_ECHO_CHARS = 200


@router.post(
    "/ai/generate-flow",
    response_model=FlowGenerationResponse,
    responses={
        400: {"model": FlowGenerationErrorResponse},
        401: {"model": FlowGenerationErrorResponse},
        500: {"model": FlowGenerationErrorResponse},
        502: {"model": FlowGenerationErrorResponse},
        504: {"model": FlowGenerationErrorResponse},
    },
    tags=["ai"],
)
def generate_flow(
    payload: GenerationRequest,
    http_request: Request,
    user_id: str = Depends(require_user_id),
    generator: FlowGenerator = Depends(get_flow_generator),
) -> FlowGenerationResponse:
    """Generate (or replay from cache) a multi-day flow for the caller."""
    bind_user_id(user_id)
    request_id = getattr(http_request.state, "request_id", None)
    result = generator.generate(payload, user_id=user_id, request_id=request_id)
    flow = result.flow
    return FlowGenerationResponse(
        flow_name=flow.flow_name,
        flow_color=flow.flow_color,
        overview_title=flow.overview_title,
        overview_summary=flow.overview_summary,
        notes=list(flow.notes),
        ai_metadata=GenerationMetadata(
            generated=True,
            model=result.model_used,
            prompt=payload.description[:PROMPT_ECHO_CHARS],
        ),
        model_used=result.model_used,
        cached=result.cached,
    )
