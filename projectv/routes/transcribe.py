"""
Rota de transcrição de áudio
"""
from fastapi import APIRouter, Depends, Request

from ..models import ErrorResponse, RateLimitResponse, TranscribeResponse
from ..services import TranscribePipeline, get_pipeline

router = APIRouter(tags=["transcrição"])


@router.post(
    "/transcribe",
    response_model=TranscribeResponse,
    summary="Transcrever e resumir áudio",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": RateLimitResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {"audio": {"type": "string", "format": "binary"}},
                        "required": ["audio"],
                    }
                }
            },
        }
    },
)
async def transcribe(request: Request, pipeline: TranscribePipeline = Depends(get_pipeline)):
    """
    Transcreve o áudio enviado e gera um resumo estruturado

    - audio: arquivo multipart (audio/* ou application/octet-stream, até 25MB)
    """
    return await pipeline.run(request)
