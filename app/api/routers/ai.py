from fastapi import APIRouter, Depends

from app.api.errors import http_error
from app.domain.errors import AiUnavailable
from app.domain.schemas import (
    AiStatusOut,
    GeneratedTextOut,
    GenerateDescriptionIn,
    GenerateTitleIn,
    SearchTermsIn,
    SearchTermsOut,
)
from app.services.ai_service import AiService, get_ai_service

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/generate-description", response_model=GeneratedTextOut)
def generate_description(payload: GenerateDescriptionIn, ai: AiService = Depends(get_ai_service)):
    try:
        text = ai.generate_description(
            payload.title,
            current_description=payload.current_description,
            category_name=payload.category_name,
            price=payload.price,
        )
    except AiUnavailable as e:
        raise http_error(e)
    return {"text": text}


@router.post("/generate-title", response_model=GeneratedTextOut)
def generate_title(payload: GenerateTitleIn, ai: AiService = Depends(get_ai_service)):
    return {"text": ai.generate_title(payload.title, payload.category_name)}


@router.post("/search-terms", response_model=SearchTermsOut)
def search_terms(payload: SearchTermsIn, ai: AiService = Depends(get_ai_service)):
    return {"terms": ai.search_terms(payload.query)}


@router.get("/status", response_model=AiStatusOut)
def status(ai: AiService = Depends(get_ai_service)):
    return {"available": ai.is_available(), "model": ai.client.model}
