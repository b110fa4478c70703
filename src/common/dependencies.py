# src/common/dependencies.py
"""FastAPI dependencies handing out the external-service clients built in the lifespan."""

from fastapi import Request

from src.common.cache import CacheService
from src.common.llm import LLMService
from src.common.storage import StorageService


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_llm(request: Request) -> LLMService:
    return request.app.state.llm
