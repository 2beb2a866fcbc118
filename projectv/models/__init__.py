"""
Modelos de dados
"""
from .transcription import (
    FALLBACK_SUMMARY,
    ErrorResponse,
    RateLimitResponse,
    ServiceInfo,
    StageOutcome,
    StageResult,
    SummaryResult,
    TranscribeMetadata,
    TranscribeResponse,
    UploadedAudio,
)

__all__ = [
    'FALLBACK_SUMMARY',
    'ErrorResponse',
    'RateLimitResponse',
    'ServiceInfo',
    'StageOutcome',
    'StageResult',
    'SummaryResult',
    'TranscribeMetadata',
    'TranscribeResponse',
    'UploadedAudio',
]
