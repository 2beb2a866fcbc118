"""
Modelos de dados do pipeline de transcrição
Tudo é por requisição; nada é persistido.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..errors import ApiError


class UploadedAudio:
    """Áudio recebido, mantido inteiro em memória"""

    def __init__(self, data: bytes, content_type: str):
        self.data = data
        self.content_type = content_type
        self.size = len(data)


class SummaryResult(BaseModel):
    """Resumo estruturado devolvido pelo modelo de linguagem"""
    summary: str
    keyPoints: List[str] = Field(default_factory=list)
    tasks: List[str] = Field(default_factory=list)


# Usado quando a chamada de resumo falha por completo
FALLBACK_SUMMARY = SummaryResult(
    summary="Resumo gerado com sucesso",
    keyPoints=["Transcrição processada"],
    tasks=[],
)


class TranscribeMetadata(BaseModel):
    processingTime: int = Field(..., ge=0, description="Tempo total em ms")
    audioSize: int = Field(..., description="Tamanho do áudio em bytes")
    transcriptLength: int = Field(..., description="Número de caracteres da transcrição")
    timestamp: str = Field(..., description="Conclusão, ISO-8601 UTC")


class TranscribeResponse(BaseModel):
    """Resposta de sucesso de POST /api/transcribe"""
    success: bool = True
    transcript: str
    summary: str
    keyPoints: List[str]
    tasks: List[str]
    metadata: TranscribeMetadata


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[str] = None
    processingTime: Optional[int] = None


class RateLimitResponse(BaseModel):
    error: str
    retryAfter: int


class ServiceInfo(BaseModel):
    """Resposta de GET /"""
    status: str
    service: str
    version: str
    powered_by: str
    endpoints: Dict[str, str]


class StageOutcome(str, Enum):
    """Resultado de uma etapa do pipeline"""
    OK = "ok"
    UPSTREAM_FAILURE = "upstream_failure"
    DEGRADED = "degraded"


class StageResult:
    """Ok(valor) | UpstreamFailure(erro) | Degraded(fallback)"""

    def __init__(self, outcome: StageOutcome, value: Any = None,
                 error: Optional[ApiError] = None, reason: str = ""):
        self.outcome = outcome
        self.value = value
        self.error = error
        self.reason = reason

    @classmethod
    def ok(cls, value: Any) -> 'StageResult':
        return cls(StageOutcome.OK, value=value)

    @classmethod
    def upstream_failure(cls, error: ApiError) -> 'StageResult':
        return cls(StageOutcome.UPSTREAM_FAILURE, error=error, reason=error.message)

    @classmethod
    def degraded(cls, fallback: Any, reason: str) -> 'StageResult':
        return cls(StageOutcome.DEGRADED, value=fallback, reason=reason)

    def unwrap(self) -> Any:
        """Valor da etapa; relança o erro em caso de falha do upstream"""
        if self.outcome == StageOutcome.UPSTREAM_FAILURE:
            raise self.error
        return self.value

    def __repr__(self) -> str:
        return f"StageResult({self.outcome.value}, reason={self.reason!r})"
