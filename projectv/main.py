"""
Project V Backend - entrada FastAPI
"""
import logging
import os
import sys
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import config
from .errors import FileTooLargeError, register_error_handlers
from .models import ServiceInfo
from .routes import api_router
from .services import SlidingWindowRateLimiter
from .services.upload_gate import exceeds_declared_length

SERVICE_NAME = "Project V Backend"
VERSION = "1.0.0"


def setup_logging():
    """Configura o logging"""
    handlers = [logging.StreamHandler()]

    log_file = config.get('logging.file', 'logs/app.log')
    if log_file:
        log_dir = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(RotatingFileHandler(log_file, maxBytes=10*1024*1024, backupCount=5))

    logging.basicConfig(
        level=getattr(logging, str(config.get('logging.level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

setup_logging()
logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """Limite de requisições por IP, antes de qualquer leitura do corpo"""

    message = 'Muitas requisições. Tente novamente em 1 minuto.'

    def __init__(self, limiter: SlidingWindowRateLimiter):
        self.limiter = limiter

    async def __call__(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        decision = self.limiter.try_acquire(client_ip)

        if not decision.allowed:
            logger.warning("Limite de requisições excedido - IP: %s", client_ip)
            retry_after = int(self.limiter.window_seconds)
            response = JSONResponse(
                status_code=429,
                content={"error": self.message, "retryAfter": retry_after},
            )
            response.headers["Retry-After"] = str(retry_after)
        else:
            response = await call_next(request)

        response.headers["RateLimit-Limit"] = str(decision.limit)
        response.headers["RateLimit-Remaining"] = str(decision.remaining)
        response.headers["RateLimit-Reset"] = str(decision.reset_after)
        return response


class BodySizeGuardMiddleware:
    """Rejeita uploads cujo Content-Length já passa do teto, sem ler o corpo"""

    async def __call__(self, request: Request, call_next):
        if request.method == "POST" and exceeds_declared_length(request.headers.get("content-length")):
            logger.warning("Upload rejeitado pelo Content-Length: %s", request.headers.get("content-length"))
            return FileTooLargeError().to_response()
        return await call_next(request)


SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    # respostas podem ser lidas por outras origens
    "Cross-Origin-Resource-Policy": "cross-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware:
    """Cabeçalhos de segurança em todas as respostas"""

    def __init__(self, headers: dict = None):
        self.headers = headers or SECURITY_HEADERS

    async def __call__(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


rate_limiter = RateLimitMiddleware(
    SlidingWindowRateLimiter(
        max_requests=config.get_int('rate_limit.max_requests', 10),
        window_seconds=config.get_int('rate_limit.window_seconds', 60),
    )
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ciclo de vida da aplicação"""
    logger.info("%s iniciando...", SERVICE_NAME)
    if not config.api_key:
        # uvicorn encerra com status != 0 quando o startup falha
        logger.error("ERRO: OPENAI_API_KEY não configurada!")
        raise RuntimeError("OPENAI_API_KEY não configurada. Crie um arquivo .env com: OPENAI_API_KEY=sua_chave_aqui")

    yield

    rate_limiter.limiter.reset()
    logger.info("%s encerrado", SERVICE_NAME)


app = FastAPI(
    title="Project V API",
    description="Transcrição de áudio e resumo automático",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

register_error_handlers(app)

# Ordem de execução: CORS -> segurança -> rate limit -> tamanho do corpo -> rota
# (o último registrado é o mais externo; CORS envolve inclusive as rejeições)
app.middleware("http")(BodySizeGuardMiddleware())
app.middleware("http")(rate_limiter)
app.middleware("http")(SecurityHeadersMiddleware())
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(api_router)


@app.get("/", response_model=ServiceInfo, summary="Health check")
async def root():
    """Informações do serviço"""
    return {
        "status": "online",
        "service": SERVICE_NAME,
        "version": VERSION,
        "powered_by": "GPT-4o Transcribe",
        "endpoints": {
            "health": "GET /",
            "transcribe": "POST /api/transcribe"
        }
    }


def main():
    import uvicorn

    if not config.api_key:
        logger.error("ERRO: OPENAI_API_KEY não configurada!")
        print("Crie um arquivo .env com: OPENAI_API_KEY=sua_chave_aqui", file=sys.stderr)
        sys.exit(1)

    host = config.get('host', '0.0.0.0')
    port = config.get_int('port', 3000)

    logger.info("Servidor rodando em: http://%s:%s", host, port)
    logger.info("Endpoints: GET / (health check), POST /api/transcribe (transcrição de áudio)")

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
