"""
Pipeline de transcrição
upload -> transcrição (obrigatória) -> resumo (degradável) -> envelope de resposta
"""
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import ApiError, InternalError
from ..models import StageOutcome, TranscribeMetadata, TranscribeResponse
from .summary_service import SummaryService
from .transcription_service import TranscriptionService
from .upload_gate import extract_audio

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return max(int((time.monotonic() - start) * 1000), 0)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class TranscribePipeline:
    """Orquestra as etapas de uma requisição; sem estado entre requisições"""

    def __init__(self, transcriber: Optional[TranscriptionService] = None,
                 summarizer: Optional[SummaryService] = None):
        self.transcriber = transcriber or TranscriptionService()
        self.summarizer = summarizer or SummaryService()

    async def run(self, request: Request) -> TranscribeResponse:
        start = time.monotonic()
        client_host = request.client.host if request.client else "unknown"
        logger.info("Nova requisição de transcrição - IP: %s", client_host)

        try:
            audio = await extract_audio(request)

            # falha aqui aborta a requisição
            transcript = (await self.transcriber.transcribe(audio)).unwrap()

            summary_stage = await self.summarizer.summarize(transcript)
            if summary_stage.outcome == StageOutcome.DEGRADED:
                logger.warning("Resumo degradado: %s", summary_stage.reason)
            summary = summary_stage.unwrap()

            processing_time = _elapsed_ms(start)
            logger.info("Processamento concluído em %dms", processing_time)

            return TranscribeResponse(
                transcript=transcript,
                summary=summary.summary,
                keyPoints=summary.keyPoints,
                tasks=summary.tasks,
                metadata=TranscribeMetadata(
                    processingTime=processing_time,
                    audioSize=audio.size,
                    transcriptLength=len(transcript),
                    timestamp=_utc_timestamp(),
                ),
            )
        except ApiError as exc:
            logger.info("Requisição rejeitada: %s (%s)", exc.code, exc.status_code)
            raise
        except StarletteHTTPException:
            # multipart malformado etc.
            raise
        except Exception as exc:
            processing_time = _elapsed_ms(start)
            logger.exception("Erro interno após %dms", processing_time)
            raise InternalError(details=str(exc), processing_time=processing_time) from exc


_pipeline: Optional[TranscribePipeline] = None


def get_pipeline() -> TranscribePipeline:
    """Dependência FastAPI; substituível em testes via dependency_overrides"""
    global _pipeline
    if _pipeline is None:
        _pipeline = TranscribePipeline()
    return _pipeline
