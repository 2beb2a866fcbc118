"""
Validação do upload de áudio (campo multipart `audio`)
O corpo é lido em streaming: passou do teto, a leitura para na hora.
"""
import logging
from typing import AsyncGenerator, Optional

from fastapi import Request
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException, MultiPartParser

from ..config import config
from ..errors import FileTooLargeError, InvalidFileTypeError, NoAudioFileError
from ..models import UploadedAudio

logger = logging.getLogger(__name__)

AUDIO_FIELD = "audio"
OCTET_STREAM = "application/octet-stream"
MULTIPART_FORM = "multipart/form-data"
MAX_FILE_SIZE = 25 * 1024 * 1024  # 25MB
# Margem para o envelope multipart além do arquivo em si
MULTIPART_SLACK = 64 * 1024


def max_file_size() -> int:
    return config.get_int('upload.max_file_size', MAX_FILE_SIZE)


def is_allowed_content_type(content_type: Optional[str]) -> bool:
    """audio/* ou o binário genérico"""
    mime = (content_type or OCTET_STREAM).split(';', 1)[0].strip().lower()
    return mime.startswith('audio/') or mime == OCTET_STREAM


def exceeds_declared_length(content_length: Optional[str], limit: Optional[int] = None) -> bool:
    """Content-Length declarado já ultrapassa o teto (corpo ainda não lido)"""
    if not content_length or not content_length.isdigit():
        return False
    limit = max_file_size() if limit is None else limit
    return int(content_length) > limit + MULTIPART_SLACK


class InMemoryMultiPartParser(MultiPartParser):
    """MultiPartParser cujos arquivos nunca transbordam para o disco"""

    def __init__(self, headers, stream, spool_max_size: int, **kwargs):
        super().__init__(headers, stream, **kwargs)
        # o corpo inteiro é limitado a este tamanho, então o spool nunca rola
        self.spool_max_size = spool_max_size


async def limited_stream(request: Request, body_limit: int) -> AsyncGenerator[bytes, None]:
    """Repassa o corpo bloco a bloco; aborta assim que passar de body_limit"""
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > body_limit:
            logger.warning("Upload interrompido após %d bytes", received)
            raise FileTooLargeError()
        yield chunk


async def parse_upload_form(request: Request, limit: int) -> FormData:
    """Faz o parse multipart em memória, com o corpo limitado a limit + margem"""
    body_limit = limit + MULTIPART_SLACK
    parser = InMemoryMultiPartParser(
        request.headers,
        limited_stream(request, body_limit),
        spool_max_size=body_limit,
        max_files=1,
    )
    try:
        return await parser.parse()
    except MultiPartException as exc:
        raise HTTPException(status_code=400, detail=exc.message)


def _is_multipart(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(';', 1)[0].strip().lower() == MULTIPART_FORM


async def extract_audio(request: Request) -> UploadedAudio:
    """Extrai e valida o único arquivo `audio` da requisição"""
    if not _is_multipart(request):
        raise NoAudioFileError()

    limit = max_file_size()
    form = await parse_upload_form(request, limit)
    try:
        upload = form.get(AUDIO_FIELD)
        if not isinstance(upload, UploadFile):
            raise NoAudioFileError()

        content_type = upload.content_type or OCTET_STREAM
        if not is_allowed_content_type(content_type):
            logger.warning("Tipo de arquivo rejeitado: %s", content_type)
            raise InvalidFileTypeError()

        if upload.size is not None and upload.size > limit:
            raise FileTooLargeError()

        data = await upload.read()
    finally:
        await form.close()

    logger.info("Arquivo recebido: %d bytes, tipo: %s", len(data), content_type)
    return UploadedAudio(data=data, content_type=content_type)
