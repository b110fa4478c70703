# src/common/llm/llm_service.py
"""
LLM Service for calling the Gemini generateContent endpoint.

Used by doctors for medication suggestions and by the report analysis
endpoint. One instance is built in the application lifespan and injected
into request handlers.
"""

import json
import re
from typing import List, Optional

import httpx

from src.common.config import settings
from src.common.exceptions import UpstreamError
from src.common.utils.logger import get_logger

logger = get_logger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

SYSTEM_PROMPTS = {
    "prescription": """You are a medical AI assistant helping doctors create prescriptions.
Provide medication suggestions based on symptoms, diagnosis, and patient history.
Always include: medication name, dosage, frequency, and duration.
Consider drug interactions and patient allergies.
Format your response as JSON array of medication objects with: name, dosage, frequency, duration, reason.""",

    "report_analysis": """You are a medical AI assistant analyzing medical reports.
Analyze the report for:
1. Key findings and abnormalities
2. Normal ranges and values
3. Potential concerns or red flags
4. Recommendations for follow-up

Provide a structured analysis in JSON format.""",
}

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMService:
    """Service for interacting with the Gemini text generation API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.client = client or httpx.AsyncClient(
            base_url=GEMINI_BASE_URL,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> str:
        """
        Generate text for a single-turn prompt.

        Raises:
            UpstreamError: when the provider is unconfigured, times out or fails.
        """
        if not self.api_key:
            raise UpstreamError("GEMINI_API_KEY is not configured")

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens,
            },
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        try:
            response = await self.client.post(
                f"/models/{self.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": self.api_key},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamError("LLM request timed out") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(f"LLM request failed: {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"LLM request error: {e}") from e

        data = response.json()
        candidates = data.get("candidates") or []
        if not candidates:
            raise UpstreamError("LLM returned no candidates")
        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)

    async def suggest_medications(
        self,
        symptoms: str,
        diagnosis: str,
        patient_history: Optional[str] = None,
    ) -> List[dict]:
        """Ask for medication suggestions and parse the JSON array out of the reply."""
        prompt = f"""Based on the following information, suggest appropriate medications:

Symptoms: {symptoms}
Diagnosis: {diagnosis}
{f"Patient History: {patient_history}" if patient_history else ""}

Provide medication suggestions in JSON format:
[
  {{
    "name": "Medication Name",
    "dosage": "Dosage",
    "frequency": "Frequency",
    "duration": "Duration",
    "reason": "Reason for prescription"
  }}
]"""
        response = await self.generate(
            prompt,
            system_instruction=SYSTEM_PROMPTS["prescription"],
            temperature=0.3,  # Lower temperature for more consistent medical responses
        )

        match = _JSON_ARRAY.search(response)
        if match:
            try:
                suggestions = json.loads(match.group(0))
                if isinstance(suggestions, list):
                    return [s for s in suggestions if isinstance(s, dict)]
            except json.JSONDecodeError:
                logger.warning("llm_suggestions_unparseable", length=len(response))

        return [{
            "name": "AI Suggestion",
            "dosage": "As prescribed",
            "frequency": "As needed",
            "duration": "As directed",
            "reason": response,
        }]

    async def analyze_report(self, report_text: str, report_type: str) -> dict:
        """Analyze extracted report text; returns summary, findings, abnormalities, recommendations, confidence."""
        prompt = f"""Analyze the following {report_type} report:

{report_text}

Provide analysis in JSON format:
{{
  "summary": "Brief summary",
  "findings": ["Finding 1", "Finding 2"],
  "abnormalities": ["Abnormality 1", "Abnormality 2"],
  "recommendations": ["Recommendation 1", "Recommendation 2"],
  "confidence": 0.95
}}"""
        response = await self.generate(
            prompt,
            system_instruction=SYSTEM_PROMPTS["report_analysis"],
            temperature=0.2,
        )

        match = _JSON_OBJECT.search(response)
        if match:
            try:
                analysis = json.loads(match.group(0))
                if isinstance(analysis, dict):
                    return analysis
            except json.JSONDecodeError:
                logger.warning("llm_analysis_unparseable", length=len(response))

        return {
            "summary": response,
            "findings": [],
            "abnormalities": [],
            "recommendations": [],
            "confidence": 0.8,
        }
