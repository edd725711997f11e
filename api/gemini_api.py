# api/gemini_api.py
# -*- coding: utf-8 -*-
"""
Handles interactions with the Google Gemini REST API.
generate_image_with_gemini() returns image bytes for a scene prompt;
generate_promo_message() writes a short promo caption for one of the
YAML narratives and appends the links footer.
Failures raise GenerationError with a classified kind.
"""

import base64
import json
import logging
import asyncio
import random
import time
from typing import Optional, Dict, Any, List
import requests
from config import (
    GEMINI_API_BASE_URL,
    GEMINI_IMAGE_MODEL,
    GEMINI_TEXT_MODEL,
    PROMO_NARRATIVES,
    PROMO_REQUIREMENTS_TEMPLATE,
    PROMO_LANGUAGE_NAMES,
    PROMO_LINKS,
    api_key_cycler,
)
from services.errors import GenerationError, GenerationErrorKind, classify_generation_error
from utils.html_helpers import format_links_footer

logger = logging.getLogger(__name__)

MAX_PROMPT_LEN_IMAGE = 4000
REQUEST_TIMEOUT_IMAGE = 240
REQUEST_TIMEOUT_TEXT_SINGLE = 90


# ================================== _parse_gemini_finish_reason(): Parses API finish reason/safety blocks ==================================
def _parse_gemini_finish_reason(candidate: Dict[str, Any], prompt_feedback: Optional[Dict[str, Any]]) -> Optional[str]:
    if prompt_feedback:
        block_reason_prompt = prompt_feedback.get("blockReason")
        if block_reason_prompt:
            details = prompt_feedback.get("blockReasonMessage", "")
            logger.warning(f"Gemini API Blocked (PROMPT): {block_reason_prompt}. Details: {details}")
            return f"prompt blocked: {block_reason_prompt} {details}".strip()
    finish_reason = candidate.get("finishReason")
    if finish_reason == "SAFETY":
        blocked = [r.get("category", "?") for r in candidate.get("safetyRatings") or [] if r.get("blocked")]
        logger.warning(f"Gemini API Blocked (FINISH=SAFETY). Categories: {blocked}")
        return f"response blocked (safety) {', '.join(blocked)}".strip()
    if finish_reason in ("RECITATION", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "IMAGE_SAFETY"):
        logger.warning(f"Gemini API Blocked (FINISH={finish_reason}).")
        return f"response blocked ({finish_reason.lower()})"
    return None
# ================================== _parse_gemini_finish_reason() end ==================================


# ================================== _error_detail(): Extracts message from an error response ==================================
def _error_detail(response: Optional[requests.Response], fallback: str) -> str:
    if response is None:
        return fallback
    try:
        return response.json().get("error", {}).get("message", response.text[:500])
    except (json.JSONDecodeError, ValueError, AttributeError):
        return response.text[:500] or fallback
# ================================== _error_detail() end ==================================


# ================================== _call_generate_content(): POSTs generateContent, returns first candidate ==================================
async def _call_generate_content(model_name: str, payload: Dict[str, Any], timeout: float, label: str) -> Dict[str, Any]:
    if api_key_cycler is None:
        raise GenerationError(GenerationErrorKind.AUTH, "no Gemini API key configured")
    api_key = next(api_key_cycler)
    api_url = f"{GEMINI_API_BASE_URL.strip('/')}/v1beta/models/{model_name}:generateContent"
    headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
    logger.debug(f"Вызов Gemini {label} API: {api_url}")
    try:
        start_time = time.time()
        response = await asyncio.to_thread(requests.post, api_url, headers=headers, json=payload, timeout=timeout)
        logger.info(f"{label} API Call took {time.time() - start_time:.3f}s (Status {response.status_code})")
        response.raise_for_status()
        res_json = response.json()
    except requests.exceptions.Timeout as e:
        logger.error(f"Тайм-аут {label} API ({timeout} сек).")
        raise GenerationError(GenerationErrorKind.GENERIC, f"timeout after {timeout}s") from e
    except requests.exceptions.RequestException as e:
        status_code = e.response.status_code if e.response is not None else None
        detail = _error_detail(e.response, str(e))
        logger.error(f"Ошибка {label} API (HTTP {status_code or 'N/A'}): {detail[:500]}")
        raise GenerationError(classify_generation_error(status_code=status_code, message=detail), detail) from e
    except ValueError as e:
        logger.error(f"Ошибка декодирования JSON от {label} API: {e}")
        raise GenerationError(GenerationErrorKind.GENERIC, "malformed API response") from e
    if "error" in res_json:
        message = res_json["error"].get("message", "unknown API error")
        logger.error(f"Ошибка Gemini {label} API (в JSON): {message}")
        raise GenerationError(classify_generation_error(status_code=res_json["error"].get("code"), message=message), message)
    candidates = res_json.get("candidates") or []
    prompt_feedback = res_json.get("promptFeedback")
    block_reason = _parse_gemini_finish_reason(candidates[0] if candidates else {}, prompt_feedback)
    if block_reason:
        raise GenerationError(GenerationErrorKind.SAFETY, block_reason)
    if not candidates:
        logger.warning(f"{label} API OK, но нет кандидатов: {str(res_json)[:300]}")
        raise GenerationError(GenerationErrorKind.GENERIC, "no candidates in response")
    return candidates[0]
# ================================== _call_generate_content() end ==================================


# ================================== generate_image_with_gemini(): Generates an image for a prompt ==================================
async def generate_image_with_gemini(prompt: str, model_name: str = GEMINI_IMAGE_MODEL) -> bytes:
    if len(prompt) > MAX_PROMPT_LEN_IMAGE:
        logger.warning(f"Длина промпта изображения {len(prompt)} > {MAX_PROMPT_LEN_IMAGE}. Обрезается.")
        prompt = prompt[:MAX_PROMPT_LEN_IMAGE]
    payload = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {"candidateCount": 1, "responseModalities": ["TEXT", "IMAGE"]},
    }
    candidate = await _call_generate_content(model_name, payload, REQUEST_TIMEOUT_IMAGE, "IMAGE")
    text_parts: List[str] = []
    for part in (candidate.get("content") or {}).get("parts") or []:
        data = part.get("inlineData") or part.get("inline_data")
        if data and data.get("mimeType", data.get("mime_type", "")).startswith("image/"):
            try:
                image_bytes = base64.b64decode(data["data"])
            except (KeyError, ValueError) as e:
                raise GenerationError(GenerationErrorKind.GENERIC, f"image decode failed: {e}") from e
            logger.debug(f"API вернул изображение ({len(image_bytes)} байт).")
            return image_bytes
        if "text" in part:
            text_parts.append(part["text"])
    detail = " ".join(text_parts).strip() or f"finishReason={candidate.get('finishReason', 'N/A')}"
    logger.warning(f"Image API вернул без изображения: {detail[:200]}")
    raise GenerationError(classify_generation_error(message=detail), f"no image returned: {detail[:200]}")
# ================================== generate_image_with_gemini() end ==================================


# ================================== generate_text_with_gemini_single(): Generates single text response ==================================
async def generate_text_with_gemini_single(user_prompt: str, system_prompt_text: Optional[str] = None, model_name: str = GEMINI_TEXT_MODEL) -> str:
    generation_config = {"candidateCount": 1, "temperature": 0.9}
    payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": user_prompt}]}], "generationConfig": generation_config}
    if system_prompt_text:
        payload["system_instruction"] = {"parts": [{"text": system_prompt_text}]}
    candidate = await _call_generate_content(model_name, payload, REQUEST_TIMEOUT_TEXT_SINGLE, "TEXT")
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts).strip()
    if not text:
        raise GenerationError(GenerationErrorKind.GENERIC, "empty text response")
    return text
# ================================== generate_text_with_gemini_single() end ==================================


# ================================== build_promo_prompt(): Picks a narrative and adds requirements ==================================
def build_promo_prompt(language: str, rng: random.Random = random) -> str:
    narratives = PROMO_NARRATIVES.get(language) or PROMO_NARRATIVES.get("en") or {}
    if not narratives:
        raise GenerationError(GenerationErrorKind.GENERIC, "no promo narratives configured")
    narrative_name = rng.choice(sorted(narratives))
    logger.debug(f"Promo narrative: {narrative_name} ({language})")
    requirements = PROMO_REQUIREMENTS_TEMPLATE.format(language_name=PROMO_LANGUAGE_NAMES.get(language, language))
    return f"{narratives[narrative_name]}\n\n{requirements}".strip()
# ================================== build_promo_prompt() end ==================================


def append_links_footer(text: str) -> str:
    footer = format_links_footer(PROMO_LINKS)
    return f"{text}\n\n{footer}" if footer else text


# ================================== generate_promo_message(): Writes a promo caption with links ==================================
async def generate_promo_message(language: str = "ru", model_name: str = GEMINI_TEXT_MODEL) -> str:
    promo_text = await generate_text_with_gemini_single(build_promo_prompt(language), model_name=model_name)
    promo_text = promo_text.strip().strip('"').strip()
    logger.info(f"Промо ({language}) сгенерировано: '{promo_text[:80]}...'")
    return append_links_footer(promo_text)
# ================================== generate_promo_message() end ==================================


# api/gemini_api.py end
