"""
Smart Parse Agent

Turns a free-form sentence ("almoço 45,90 ontem") into a pre-filled
expense draft using Gemini.

CRITICAL BOUNDARIES:
- CAN: Suggest amount, category, description and date
- CANNOT: Save anything; the result only fills the form
- CANNOT: Invent categories; a suggested name that matches nothing in
  the active scope leaves the category empty

The feature is optional. Without GEMINI_API_KEY, or when the call fails,
times out or returns something unusable, `parse` returns None and the
user keeps typing the expense by hand.
"""

import asyncio
import json
import unicodedata
from collections.abc import Sequence
from datetime import date
from typing import Any, Optional
from uuid import UUID

import google.generativeai as genai
import structlog
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from pocketbook.audit import AuditLogger
from pocketbook.config import get_settings
from pocketbook.models.audit import AuditEventBuilder
from pocketbook.models.expense import Category, SmartParseResult


logger = structlog.get_logger(__name__)


class SmartParseUnavailableError(Exception):
    """No API key is configured."""
    pass


def _fold(text: str) -> str:
    """Lowercase and strip accents, so 'farmacia' matches 'Farmácia'."""
    decomposed = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def resolve_category(
    name: Optional[str],
    categories: Sequence[Category],
) -> Optional[Category]:
    """
    Map a suggested category name onto one of the scope's categories.

    Exact match first (case and accents ignored), then a unique partial
    match. Anything else resolves to None.
    """
    if not name or not name.strip():
        return None

    wanted = _fold(name)
    for category in categories:
        if _fold(category.name) == wanted:
            return category

    partial = [
        c for c in categories
        if wanted in _fold(c.name) or _fold(c.name) in wanted
    ]
    if len(partial) == 1:
        return partial[0]
    return None


def build_prompt(text: str, categories: Sequence[Category], today: date) -> str:
    category_names = ", ".join(c.name for c in categories)
    return f"""Hoje é dia {today.isoformat()}. Analise o seguinte texto: "{text}".
Extraia o valor, a melhor categoria correspondente (dentre: {category_names}) e uma descrição curta.
Se o usuário mencionar uma data específica, use-a no formato YYYY-MM-DD, caso contrário use a data de hoje.
Se não conseguir encontrar uma categoria exata, sugira a mais próxima ou deixe em branco.

Responda APENAS com um objeto JSON neste formato:
{{"amount": 45.9, "categoryName": "nome da categoria", "description": "descrição curta", "date": "YYYY-MM-DD"}}"""


def extract_json(text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Raises:
        ValueError: If the reply holds no JSON object
    """
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ValueError("Reply contains no JSON object")
    data = json.loads(text[start:end])
    if not isinstance(data, dict):
        raise ValueError("Reply JSON is not an object")
    return data


class SmartParseAgent:
    """
    Gemini-backed sentence parser.

    A `model` may be injected (anything with an async
    `generate_content_async(prompt)` returning an object with `.text`);
    otherwise a Gemini model is built from settings on first use.
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = get_settings().gemini
        self._model = model
        self._audit_logger = audit_logger

    @property
    def is_available(self) -> bool:
        return self._model is not None or self._settings.is_configured

    def _get_model(self):
        if self._model is None:
            if not self._settings.is_configured:
                raise SmartParseUnavailableError("GEMINI_API_KEY not set")
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                },
            )
        return self._model

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await asyncio.wait_for(
            self._get_model().generate_content_async(prompt),
            timeout=self._settings.request_timeout_seconds,
        )
        return (response.text or "").strip()

    async def parse(
        self,
        text: str,
        categories: Sequence[Category],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[SmartParseResult]:
        """
        Parse a sentence into a suggestion.

        Returns:
            The suggestion, or None if the feature is unavailable or the
            call produced nothing usable
        """
        if not text or not text.strip():
            return None

        if not self.is_available:
            logger.info("smart_parse_unavailable")
            if self._audit_logger:
                self._audit_logger.log(AuditEventBuilder.smart_parse_unavailable())
            return None

        today = today or date.today()
        prompt = build_prompt(text.strip(), categories, today)

        try:
            reply = await self._generate(prompt)
            result = SmartParseResult.model_validate(extract_json(reply))
        except (ValueError, ValidationError) as e:
            return self._failed(f"Unusable reply: {e}", correlation_id)
        except asyncio.TimeoutError:
            return self._failed("Timed out", correlation_id)
        except Exception as e:
            # Network and API errors from the client library
            return self._failed(f"{type(e).__name__}: {e}", correlation_id)

        matched = resolve_category(result.category_name, categories)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.smart_parse_completed(
                matched_category=matched is not None,
                correlation_id=correlation_id,
            ))
        return result

    def _failed(self, message: str, correlation_id: Optional[UUID]) -> None:
        logger.warning("smart_parse_failed", error=message)
        if self._audit_logger:
            self._audit_logger.log(AuditEventBuilder.smart_parse_failed(message, correlation_id))
        return None
