"""
Cliente de transcrição (speech-to-text) da OpenAI
"""
import asyncio
import logging
from typing import Optional

import aiohttp

from ..config import config
from ..errors import EmptyTranscriptionError, TranscriptionError
from ..models import StageResult, UploadedAudio

logger = logging.getLogger(__name__)

UPLOAD_FILENAME = "audio.webm"
DEFAULT_TIMEOUT = 30.0


class TranscriptionService:
    """Envia o áudio bruto para /audio/transcriptions e devolve texto puro"""

    def __init__(self, api_key: str = None, api_base: str = None, model: str = None,
                 language: str = None, timeout: Optional[float] = None):
        self.api_key = api_key or config.api_key
        self.api_base = api_base or config.get('openai.api_base', 'https://api.openai.com/v1')
        self.model = model or config.get('openai.transcription_model', 'gpt-4o-transcribe')
        self.language = language or config.get('openai.language', 'pt')
        self.timeout = timeout or config.get_float('openai.timeout', DEFAULT_TIMEOUT)

    def _build_form(self, audio: UploadedAudio) -> aiohttp.FormData:
        form = aiohttp.FormData()
        form.add_field('file', audio.data, filename=UPLOAD_FILENAME, content_type=audio.content_type)
        form.add_field('model', self.model)
        form.add_field('language', self.language)
        form.add_field('response_format', 'text')
        return form

    async def transcribe(self, audio: UploadedAudio) -> StageResult:
        """Ok(texto) ou UpstreamFailure(TRANSCRIPTION_ERROR | EMPTY_TRANSCRIPTION)"""
        url = f"{self.api_base}/audio/transcriptions"
        headers = {"Authorization": f"Bearer {self.api_key}"}

        logger.info("Enviando %d bytes para transcrição (%s)", audio.size, self.model)
        try:
            async with aiohttp.ClientSession(trust_env=True) as session:
                async with session.post(
                    url,
                    data=self._build_form(audio),
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    body = await response.text()
                    if response.status < 200 or response.status >= 300:
                        logger.error("Erro na API OpenAI (Transcrição) %s: %s", response.status, body)
                        return StageResult.upstream_failure(TranscriptionError(response.status, body))
        except asyncio.TimeoutError:
            logger.error("Transcrição excedeu o prazo de %ss", self.timeout)
            return StageResult.upstream_failure(
                TranscriptionError(504, f"Tempo limite de {self.timeout:g}s excedido no provedor de transcrição")
            )

        if not body.strip():
            logger.warning("Transcrição vazia")
            return StageResult.upstream_failure(EmptyTranscriptionError())

        logger.info("Transcrição concluída: %d caracteres", len(body))
        return StageResult.ok(body)
