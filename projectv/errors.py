"""
Erros da API e mapeamento para o envelope JSON {error, code, ...}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Erro com status HTTP e código estável"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Erro interno do servidor"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.message, "code": self.code}
        body.update(self.extra)
        return body

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_body())


class NoAudioFileError(ApiError):
    status_code = 400
    code = "NO_AUDIO_FILE"
    message = "Nenhum arquivo de áudio foi enviado"


class FileTooLargeError(ApiError):
    status_code = 400
    code = "FILE_TOO_LARGE"
    message = "Arquivo muito grande. Máximo permitido: 25MB"


class InvalidFileTypeError(ApiError):
    status_code = 400
    code = "INVALID_FILE_TYPE"
    message = "Apenas arquivos de áudio são permitidos"


class TranscriptionError(ApiError):
    """Falha do provedor de transcrição; status e corpo do upstream repassados"""

    code = "TRANSCRIPTION_ERROR"
    message = "Erro na transcrição"

    def __init__(self, status_code: int, details: str):
        self.details = details
        super().__init__(status_code=status_code, extra={"details": details})


class EmptyTranscriptionError(ApiError):
    status_code = 400
    code = "EMPTY_TRANSCRIPTION"
    message = "Não foi possível transcrever o áudio. Verifique se há fala audível."


class InternalError(ApiError):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Erro interno do servidor"

    def __init__(self, details: str, processing_time: int):
        super().__init__(extra={"details": details, "processingTime": processing_time})


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return exc.to_response()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """404/405/multipart malformado etc. também saem como JSON"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": f"HTTP_{exc.status_code}"},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Última barreira: nenhum detalhe interno vai para o cliente"""
    logger.error("Erro não tratado em %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Erro interno do servidor", "code": "UNHANDLED_ERROR"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
