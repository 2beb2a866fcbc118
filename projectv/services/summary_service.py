"""
Serviço de resumo
Chama /chat/completions e decodifica o JSON {summary, keyPoints, tasks} da resposta.
Qualquer falha aqui degrada para um resumo padrão; nunca aborta a requisição.
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import config
from ..models import FALLBACK_SUMMARY, StageOutcome, StageResult, SummaryResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

PROMPT_TEMPLATE = """Analise esta transcrição em português brasileiro e forneça:
1. Um resumo conciso (máximo 200 palavras)
2. Os 5 pontos mais importantes
3. Tarefas ou ações identificadas (se houver)

Responda APENAS em JSON válido no formato:
{{
  "summary": "resumo aqui",
  "keyPoints": ["ponto 1", "ponto 2", "ponto 3", "ponto 4", "ponto 5"],
  "tasks": ["tarefa 1", "tarefa 2"]
}}

Transcrição: {transcript}"""


class UpstreamError(Exception):
    """Resposta inutilizável do provedor de completions"""


def _extract_json_candidates(text: str) -> List[str]:
    """Blocos ```json``` primeiro, depois objetos {...} balanceados no texto"""
    candidates: List[str] = []

    for match in re.finditer(r'```(?:json)?\s*([\s\S]*?)```', text, flags=re.IGNORECASE):
        block = match.group(1).strip()
        if block.startswith('{'):
            candidates.append(block)

    depth = 0
    start = None
    in_string = False
    escaped = False
    for idx, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            continue

        if ch == '{':
            if depth == 0:
                start = idx
            depth += 1
        elif ch == '}':
            if depth > 0:
                depth -= 1
                if depth == 0 and start is not None:
                    candidates.append(text[start:idx + 1].strip())
                    start = None

    return candidates


def decode_summary_json(text: str) -> Optional[Dict[str, Any]]:
    """Melhor esforço: o primeiro objeto JSON decodificável, ou None"""
    stripped = text.strip()
    for candidate in [stripped] + _extract_json_candidates(stripped):
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _as_text_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]


def parse_summary(reply: str) -> StageResult:
    """Ok(resumo decodificado) ou Degraded(texto bruto como resumo, listas vazias)"""
    parsed = decode_summary_json(reply)
    if parsed is None:
        return StageResult.degraded(SummaryResult(summary=reply, keyPoints=[], tasks=[]), "unparseable reply")
    return StageResult.ok(_summary_from_json(parsed, reply))


def _summary_from_json(parsed: Dict[str, Any], reply: str) -> SummaryResult:
    summary = parsed.get('summary')
    return SummaryResult(
        summary=summary if isinstance(summary, str) else reply,
        keyPoints=_as_text_list(parsed.get('keyPoints')),
        tasks=_as_text_list(parsed.get('tasks')),
    )


class SummaryService:
    """Cliente de chat completions da OpenAI para o resumo da transcrição"""

    def __init__(self, api_key: str = None, api_base: str = None, model: str = None,
                 timeout: Optional[float] = None):
        self.api_key = api_key or config.api_key
        self.api_base = api_base or config.get('openai.api_base', 'https://api.openai.com/v1')
        self.model = model or config.get('openai.summary_model', 'gpt-4o-mini')
        self.timeout = timeout or config.get_float('openai.timeout', DEFAULT_TIMEOUT)
        self.max_tokens = config.get_int('openai.summary.max_tokens', 1000)
        self.temperature = config.get_float('openai.summary.temperature', 0.3)

    def _build_prompt(self, transcript: str) -> str:
        return PROMPT_TEMPLATE.format(transcript=transcript)

    async def _call_api(self, prompt: str) -> str:
        """Chama a API e devolve o conteúdo da primeira mensagem"""
        url = f"{self.api_base}/chat/completions"

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "model": self.model,
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        async with aiohttp.ClientSession(trust_env=True) as session:
            async with session.post(
                url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    error = await response.text()
                    raise UpstreamError(f"OpenAI API error {response.status}: {error}")

                result = await response.json(content_type=None)

        try:
            content = result['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            raise UpstreamError("Resposta sem choices[0].message.content")
        if not isinstance(content, str):
            raise UpstreamError("Conteúdo da mensagem ausente")
        return content

    async def summarize(self, transcript: str) -> StageResult:
        """Ok(SummaryResult) ou Degraded(resumo padrão / texto bruto)"""
        logger.info("Gerando resumo com %s", self.model)
        try:
            reply = await self._call_api(self._build_prompt(transcript))
        except asyncio.TimeoutError:
            logger.warning("Resumo excedeu o prazo de %ss, usando dados básicos", self.timeout)
            return StageResult.degraded(FALLBACK_SUMMARY.model_copy(deep=True), "timeout")
        except (aiohttp.ClientError, UpstreamError, ValueError) as exc:
            logger.warning("Erro no resumo, usando dados básicos: %s", exc)
            return StageResult.degraded(FALLBACK_SUMMARY.model_copy(deep=True), str(exc))

        stage = parse_summary(reply)
        if stage.outcome == StageOutcome.DEGRADED:
            logger.warning("Erro ao parsear resumo, usando o texto bruto")
        else:
            logger.info("Resumo gerado com sucesso")
        return stage
