"""
Serviços
"""
from .pipeline import TranscribePipeline, get_pipeline
from .rate_limiter import RateLimitDecision, SlidingWindowRateLimiter
from .summary_service import SummaryService
from .transcription_service import TranscriptionService

__all__ = [
    'RateLimitDecision',
    'SlidingWindowRateLimiter',
    'SummaryService',
    'TranscribePipeline',
    'TranscriptionService',
    'get_pipeline',
]
