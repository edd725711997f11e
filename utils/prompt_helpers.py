# utils/prompt_helpers.py
# -*- coding: utf-8 -*-
"""
Prompt handling for image requests: validation, group mention extraction,
language detection, mood selection and the Pepe scene template.
Mood and template data come from config/prompts.yaml.
"""
import random
import re
import logging
from typing import Optional, Tuple
from config import (
    MOOD_SYNONYMS, PREDEFINED_MOODS, SCENE_PROMPT_TEMPLATE,
    MIN_PROMPT_LENGTH, MAX_PROMPT_LENGTH,
)

logger = logging.getLogger(__name__)

CYRILLIC_RE = re.compile(r'[а-яё]', re.IGNORECASE)

if not PREDEFINED_MOODS:
    logger.error("Prompt Helpers: PREDEFINED_MOODS пуст.")


# ================================== validate_prompt(): Returns an error text or None ==================================
def validate_prompt(prompt: Optional[str]) -> Optional[str]:
    trimmed = (prompt or "").strip()
    if not trimmed:
        return "Описание изображения не может быть пустым / Image description cannot be empty"
    if len(trimmed) < MIN_PROMPT_LENGTH:
        return f"Описание слишком короткое (минимум {MIN_PROMPT_LENGTH} символа) / Description too short (minimum {MIN_PROMPT_LENGTH} characters)"
    if len(trimmed) > MAX_PROMPT_LENGTH:
        return f"Описание слишком длинное (максимум {MAX_PROMPT_LENGTH} символов) / Description too long (maximum {MAX_PROMPT_LENGTH} characters)"
    return None
# ================================== validate_prompt() end ==================================


def extract_bot_mention(text: str, bot_username: Optional[str]) -> Optional[str]:
    """Returns the text after `@bot_username`, or None when the bot is not mentioned."""
    if not text or not bot_username:
        return None
    match = re.search(rf'@{re.escape(bot_username)}\s+(.+)', text, re.IGNORECASE | re.DOTALL)
    return match.group(1).strip() if match else None


def detect_language(text: str) -> str:
    return "ru" if CYRILLIC_RE.search(text or "") else "en"


# ================================== extract_mood(): Finds a mood by synonym in the prompt ==================================
def extract_mood(prompt: str) -> Optional[str]:
    prompt_lower = (prompt or "").lower()
    for base_mood, synonyms in MOOD_SYNONYMS.items():
        if any(synonym in prompt_lower for synonym in synonyms):
            return base_mood
    return None
# ================================== extract_mood() end ==================================


def get_random_mood(rng: random.Random = random) -> str:
    return rng.choice(PREDEFINED_MOODS) if PREDEFINED_MOODS else "cheerful"


# ================================== build_scene_prompt(): Wraps a user prompt in the scene template ==================================
def build_scene_prompt(user_prompt: str, rng: random.Random = random) -> Tuple[str, str]:
    mood = extract_mood(user_prompt)
    if not mood:
        mood = get_random_mood(rng)
        logger.debug(f"Настроение не найдено, случайное: {mood}")
    scene_prompt = SCENE_PROMPT_TEMPLATE.format(scene=user_prompt.strip(), mood=mood)
    return scene_prompt, mood
# ================================== build_scene_prompt() end ==================================

# utils/prompt_helpers.py end
