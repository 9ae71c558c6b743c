"""Optional AI collaborator for nutrient extraction and compatibility narration.

Both entry points are best effort. Any failure of the remote model is logged
and answered by the deterministic local implementation, so callers always get
a complete result without network access.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Sequence

import aiohttp

from .compatibility import CompatibilityMatrix, analyze_compatibility
from .models import CompatibilityVerdict, Product, RiskLevel
from .nutrient_resolver import (
    NutrientResolution,
    allowed_nutrients,
    detect_combinator,
    group_tokens,
)
from .recommendation import RecommendationResult, build_result, get_recommendations
from .utils import whole_word_pattern

_LOGGER = logging.getLogger(__name__)

# === Configuration ===

USE_AI_ENV = "FERTILIZER_USE_AI"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_TIMEOUT = 30.0
DEFAULT_BASE_URL = "https://api.openai.com/v1"

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

__all__ = [
    "AIModelConfig",
    "AIModelError",
    "extract_nutrients",
    "build_nutrient_prompt",
    "build_compatibility_prompt",
    "parse_compatibility_response",
    "async_chat",
    "async_get_recommendations",
    "async_analyze_compatibility",
]


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class AIModelConfig:
    """Runtime configuration for the remote model, read from the environment."""

    use_ai: bool = field(default_factory=lambda: _env_flag(USE_AI_ENV))
    model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL") or DEFAULT_MODEL)
    api_key: str | None = field(default_factory=lambda: os.getenv("OPENAI_API_KEY") or None)
    temperature: float = field(
        default_factory=lambda: _env_float("OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE)
    )
    timeout: float = field(default_factory=lambda: _env_float("OPENAI_TIMEOUT", DEFAULT_TIMEOUT))
    base_url: str = field(
        default_factory=lambda: (os.getenv("OPENAI_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
    )

    @property
    def enabled(self) -> bool:
        return self.use_ai and bool(self.api_key)


class AIModelError(RuntimeError):
    """Raised when the remote model cannot produce a usable answer."""


# === Prompts ===

def build_nutrient_prompt(vocabulary: Sequence[str]) -> str:
    """Return the system prompt restricting suggestions to ``vocabulary``."""

    return (
        "You are an agricultural expert helping users find fertilizer products "
        "based on their nutrient requirements.\n\n"
        "You can ONLY suggest nutrients from this exact list:\n"
        f"{', '.join(vocabulary)}\n\n"
        "Rules:\n"
        "1. Do not invent ingredients, product names or brands.\n"
        "2. Ignore product form words such as powder, liquid, granular or solid.\n"
        "3. If the user asks for a specific nutrient, only suggest that nutrient.\n"
        "4. For a crop, suggest the nutrients most relevant to that crop.\n"
        "5. For general soil health, suggest Fulvic acid, Humic acid or Kelp.\n"
        "6. When the user says 'or', suggest nutrients for every option.\n\n"
        "Respond with a brief explanation of the nutrients you found and why "
        "they are relevant."
    )


def build_compatibility_prompt(products: Sequence[Product]) -> str:
    """Return the prompt asking for a JSON compatibility verdict."""

    lines = [
        "You are a chemical compatibility expert for agricultural fertilizers. "
        "Analyze the compatibility of the following products for tank mixing:",
        "",
    ]
    for index, product in enumerate(products, start=1):
        lines.extend(
            [
                f"{index}. {product.product_name}",
                f"- Nutrients: {', '.join(product.nutrients)}",
                f"- Form: {product.product_form or 'Not specified'}",
                f"- pH: {product.ph or 'Not specified'}",
                f"- Analysis: {json.dumps(dict(product.analysis), indent=2)}",
                f"- Description: {product.description or 'No description available'}",
            ]
        )
    lines.extend(
        [
            "",
            "Consider pH compatibility, nutrient interactions, precipitation risk "
            "and salt buildup. Respond only with a JSON object of the form:",
            json.dumps(
                {
                    "compatible": True,
                    "risk": "low|medium|high",
                    "explanation": "detailed chemical analysis",
                    "recommendations": [],
                    "alternative_strategies": [],
                    "chemical_interactions": [],
                    "warnings": [],
                },
                indent=2,
            ),
        ]
    )
    return "\n".join(lines)


# === Response handling ===

def _mention_pattern(token: str) -> re.Pattern[str]:
    # Element symbols are matched case-sensitively in prose ("so" is not S)
    if len(token) <= 2:
        return re.compile(rf"(?<!\w){re.escape(token)}(?!\w)")
    return whole_word_pattern(token)


def extract_nutrients(text: str, vocabulary: Iterable[str] | None = None) -> list[str]:
    """Return vocabulary tokens mentioned in ``text`` in order of appearance.

    Only whole-word mentions of whitelisted tokens are returned, so model
    output can never introduce a token outside ``vocabulary``.
    """

    allowed = tuple(vocabulary) if vocabulary is not None else allowed_nutrients()
    found: list[tuple[int, str]] = []
    for token in allowed:
        match = _mention_pattern(token).search(text or "")
        if match:
            found.append((match.start(), token))
    found.sort(key=lambda item: item[0])
    return [token for _, token in found]


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def parse_compatibility_response(text: str, products: Sequence[Product]) -> CompatibilityVerdict:
    """Return a verdict from the JSON object embedded in ``text``.

    :class:`AIModelError` is raised when no valid JSON object is found.
    """

    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise AIModelError("No JSON object in compatibility response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise AIModelError("Compatibility response is not valid JSON") from exc
    if not isinstance(data, dict):
        raise AIModelError("Compatibility response is not a JSON object")

    try:
        risk = RiskLevel(str(data.get("risk", "medium")).lower())
    except ValueError:
        risk = RiskLevel.MEDIUM

    return CompatibilityVerdict(
        compatible=bool(data.get("compatible", False)),
        risk=risk,
        explanation=str(data.get("explanation") or "Analysis completed"),
        chemical_interactions=_string_list(data.get("chemical_interactions")),
        warnings=_string_list(data.get("warnings")),
        recommendations=_string_list(data.get("recommendations")),
        alternative_strategies=_string_list(data.get("alternative_strategies")),
        products=[p.product_name for p in products],
        ai_generated=True,
    )


# === Remote calls ===

async def async_chat(
    session: aiohttp.ClientSession,
    config: AIModelConfig,
    messages: list[Dict[str, str]],
) -> str:
    """Return the first completion text for ``messages``.

    Network failures, timeouts, non-200 responses and malformed bodies are
    raised as :class:`AIModelError`.
    """

    if not config.api_key:
        raise AIModelError("OPENAI_API_KEY not set in environment.")

    body = {
        "model": config.model,
        "temperature": config.temperature,
        "messages": messages,
    }
    try:
        async with session.post(
            f"{config.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(body),
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as resp:
            if resp.status != 200:
                raise AIModelError(f"AI API error: {resp.status}")
            try:
                payload = await resp.json()
            except ValueError as exc:
                raise AIModelError("AI response body is not valid JSON") from exc
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise AIModelError(f"AI request failed: {exc}") from exc

    try:
        return str(payload["choices"][0]["message"]["content"])
    except (KeyError, IndexError, TypeError) as exc:
        raise AIModelError("Malformed AI response body") from exc


async def _with_session(
    session: aiohttp.ClientSession | None,
    config: AIModelConfig,
    messages: list[Dict[str, str]],
) -> str:
    if session is not None:
        return await async_chat(session, config, messages)
    async with aiohttp.ClientSession() as own:
        return await async_chat(own, config, messages)


# === Public Interface ===

async def async_get_recommendations(
    query: str,
    products: Iterable[Product],
    application: str | None = None,
    organic_only: bool = False,
    product_form: str | None = None,
    *,
    session: aiohttp.ClientSession | None = None,
    config: AIModelConfig | None = None,
) -> RecommendationResult:
    """Return recommendations using the remote model when it is enabled.

    The model's prose is mined for whitelisted tokens only. When the model is
    disabled, fails, or names no known nutrient, the keyword resolver is used.
    """

    cfg = config or AIModelConfig()
    items = list(products)
    if not cfg.enabled:
        return get_recommendations(query, items, application, organic_only, product_form)

    vocabulary = allowed_nutrients()
    messages = [
        {"role": "system", "content": build_nutrient_prompt(vocabulary)},
        {"role": "user", "content": query},
    ]
    try:
        analysis = await _with_session(session, cfg, messages)
    except AIModelError as err:
        _LOGGER.warning("AI recommendation failed, using keyword search: %s", err)
        return get_recommendations(query, items, application, organic_only, product_form)

    tokens = extract_nutrients(analysis, vocabulary)
    if not tokens:
        _LOGGER.warning("AI response named no known nutrients, using keyword search")
        return get_recommendations(query, items, application, organic_only, product_form)

    resolution = NutrientResolution(
        groups=group_tokens(tokens),
        combinator=detect_combinator(query),
    )
    _LOGGER.debug("AI extracted %s from %r", tokens, query)
    return build_result(
        query,
        resolution,
        items,
        application=application,
        organic_only=organic_only,
        product_form=product_form,
        explanation=analysis,
        is_fallback=False,
    )


async def async_analyze_compatibility(
    products: Iterable[Product],
    *,
    session: aiohttp.ClientSession | None = None,
    config: AIModelConfig | None = None,
    matrix: CompatibilityMatrix | None = None,
) -> CompatibilityVerdict:
    """Return a compatibility verdict narrated by the remote model if enabled."""

    cfg = config or AIModelConfig()
    items = list(products)
    if len(items) < 2 or not cfg.enabled:
        return analyze_compatibility(items, matrix)

    messages = [{"role": "user", "content": build_compatibility_prompt(items)}]
    try:
        text = await _with_session(session, cfg, messages)
        return parse_compatibility_response(text, items)
    except AIModelError as err:
        _LOGGER.warning("AI compatibility analysis failed, using local analysis: %s", err)
        return analyze_compatibility(items, matrix)
