"""
Rotas da API
"""
from fastapi import APIRouter

from . import transcribe

api_router = APIRouter(prefix="/api")

api_router.include_router(transcribe.router)
