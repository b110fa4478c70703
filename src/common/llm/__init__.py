# src/common/llm/__init__.py
"""LLM module for Gemini-backed suggestions and report analysis."""

from .llm_service import LLMService

__all__ = ["LLMService"]
