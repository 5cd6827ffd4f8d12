"""
Code AI routes: code generation and code review.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from drslab.ai.service import AIService, get_ai_service
from drslab.api.schemas import (
    AnalyzeCodeRequest,
    AnalyzeCodeResponse,
    GenerateCodeRequest,
    GenerateCodeResponse,
)
from drslab.exceptions import AIServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-code", response_model=GenerateCodeResponse)
def generate_code(
    body: GenerateCodeRequest,
    ai: AIService = Depends(get_ai_service),
) -> GenerateCodeResponse:
    """Generate code (no explanation) from a description."""
    try:
        code = ai.generate_code(body.description, body.model)
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return GenerateCodeResponse(code=code)


@router.post("/analyze-code", response_model=AnalyzeCodeResponse)
def analyze_code(
    body: AnalyzeCodeRequest,
    ai: AIService = Depends(get_ai_service),
) -> AnalyzeCodeResponse:
    """Review code for bugs, performance and security issues."""
    try:
        analysis = ai.analyze_code(body.code, body.model)
    except AIServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return AnalyzeCodeResponse(analysis=analysis)
