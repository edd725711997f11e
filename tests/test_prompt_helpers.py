# tests/test_prompt_helpers.py
# -*- coding: utf-8 -*-
import random

from config import MAX_PROMPT_LENGTH, PREDEFINED_MOODS
from handlers.generation import extract_prompt
from utils.prompt_helpers import (
    build_scene_prompt, detect_language, extract_bot_mention, extract_mood, validate_prompt,
)


def test_validate_prompt_bounds():
    assert validate_prompt("   ") is not None
    assert validate_prompt("ab") is not None
    assert validate_prompt("a" * (MAX_PROMPT_LENGTH + 1)) is not None
    assert validate_prompt("pepe on the moon") is None


def test_mention_extraction_is_case_insensitive():
    assert extract_bot_mention("hey @ShillBot pepe surfing", "shillbot") == "pepe surfing"
    assert extract_bot_mention("pepe surfing", "shillbot") is None
    assert extract_bot_mention("@shillbot pepe", None) is None


def test_group_messages_need_mention_private_do_not():
    assert extract_prompt("pepe surfing", "private", "shillbot") == "pepe surfing"
    assert extract_prompt("pepe surfing", "group", "shillbot") is None
    assert extract_prompt("@shillbot pepe surfing", "supergroup", "shillbot") == "pepe surfing"


def test_detect_language():
    assert detect_language("Пепе на луне") == "ru"
    assert detect_language("pepe on the moon") == "en"
    assert detect_language("") == "en"


def test_mood_from_synonym_wins_over_random():
    assert extract_mood("a HAPPY frog") == "cheerful"
    scene, mood = build_scene_prompt("a wealthy frog buying a yacht", rng=random.Random(1))
    assert mood == "rich"
    assert "a wealthy frog buying a yacht" in scene


def test_random_mood_is_from_catalogue():
    scene, mood = build_scene_prompt("frog on a bench", rng=random.Random(3))
    assert mood in PREDEFINED_MOODS
    assert "frog on a bench" in scene
