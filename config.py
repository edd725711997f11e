# config.py
# -*- coding: utf-8 -*-
"""
Loads configuration from .env and the prompts YAML file.
Defines constants for admission limits, session sweeps, storage and sharing.
Required values are checked by validate_config(), called from bot.py,
so importing this module never exits the process.
"""

import os
import sys
import logging
import itertools
from pathlib import Path
from typing import Dict, List, Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import yaml
from dotenv import load_dotenv

logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
dotenv_path = BASE_DIR / '.env'
if not dotenv_path.is_file():
    logger.warning(f".env file not found at {dotenv_path}.")
load_dotenv(dotenv_path=dotenv_path)

IS_STAGING = "--staging" in sys.argv
IS_DEBUG = "--debug" in sys.argv

if IS_STAGING:
    logger.info("--- Running in STAGING mode ---")
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN_STAGING")
    if not TELEGRAM_BOT_TOKEN:
        logger.warning("Staging: TELEGRAM_BOT_TOKEN_STAGING not set. Using production.")
        TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
else:
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")


# ================================== _env_int(): Reads an integer env variable with default ==================================
def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.error(f"{name}='{raw}' is not an integer, using default {default}.")
        return default
# ================================== _env_int() end ==================================


# ================================== _env_bool(): Reads a boolean env variable ==================================
def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
# ================================== _env_bool() end ==================================


# Gemini
GEMINI_API_KEYS_STR = os.getenv("GEMINI_API_KEYS") or os.getenv("GEMINI_API_KEY", "")
GEMINI_API_KEYS: List[str] = [key.strip() for key in GEMINI_API_KEYS_STR.split(",") if key.strip()]
api_key_cycler = itertools.cycle(GEMINI_API_KEYS) if GEMINI_API_KEYS else None
GEMINI_API_BASE_URL = os.getenv("GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_IMAGE_MODEL = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image-preview")
GEMINI_TEXT_MODEL = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.0-flash-exp")

# Operator
ADMIN_TELEGRAM_ID = os.getenv("ADMIN_TELEGRAM_ID")
ADMIN_ID_INT: Optional[int] = None
if ADMIN_TELEGRAM_ID:
    try:
        ADMIN_ID_INT = int(ADMIN_TELEGRAM_ID)
    except ValueError:
        logger.error(f"ADMIN_TELEGRAM_ID='{ADMIN_TELEGRAM_ID}' is not an integer. Escalation disabled.")

# Admission
REQUIRED_CHANNEL_ID = os.getenv("REQUIRED_CHANNEL_ID", "").strip() or None
DAILY_GENERATION_LIMIT = _env_int("DAILY_GENERATION_LIMIT", 10)
GENERATION_COOLDOWN_SECONDS = _env_int("GENERATION_COOLDOWN_SECONDS", 30)
QUOTA_TIMEZONE_NAME = os.getenv("QUOTA_TIMEZONE", "UTC")
try:
    QUOTA_TIMEZONE = ZoneInfo(QUOTA_TIMEZONE_NAME)
except (ZoneInfoNotFoundError, ValueError):
    logger.error(f"Unknown QUOTA_TIMEZONE '{QUOTA_TIMEZONE_NAME}', falling back to UTC.")
    QUOTA_TIMEZONE = ZoneInfo("UTC")

# Sessions
SESSION_MAX_AGE_SECONDS = _env_int("SESSION_MAX_AGE_SECONDS", 5 * 60)
SESSION_SWEEP_INTERVAL_SECONDS = _env_int("SESSION_SWEEP_INTERVAL_SECONDS", 60)
STORAGE_CLEANUP_INTERVAL_SECONDS = _env_int("STORAGE_CLEANUP_INTERVAL_SECONDS", 60 * 60)

# Storage
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "").strip() or None
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "").strip() or (f"{FIREBASE_PROJECT_ID}.appspot.com" if FIREBASE_PROJECT_ID else None)
STORAGE_PREFIX = "temp-images/"
STORAGE_URL_TTL_HOURS = _env_int("STORAGE_URL_TTL_HOURS", 24)
STORAGE_SIGNED_URLS = _env_bool("STORAGE_SIGNED_URLS", False)

# Images
COMPRESSED_MAX_SIDE = 1024
COMPRESSED_JPEG_QUALITY = 80
MAX_CAPTION_LENGTH = 1024

# Sharing
CARD_SERVER_URL = (os.getenv("CARD_SERVER_URL", "").strip().rstrip("/")) or None
CARD_SERVER_PORT = _env_int("CARD_SERVER_PORT", _env_int("PORT", 3000))
SHARE_TEXT_BUDGET = _env_int("SHARE_TEXT_BUDGET", 250)
SHARE_ATTRIBUTION = os.getenv("SHARE_ATTRIBUTION", "@PEPEGOTAVOICE")
SHARE_PAYLOAD_TTL_SECONDS = STORAGE_URL_TTL_HOURS * 60 * 60
SHARE_PAYLOAD_MAXSIZE = 5000
NATIVE_SHARE_POINTS = 1
LINK_SHARE_POINTS = 2
LEADERBOARD_SIZE = 10

# Prompts
MIN_PROMPT_LENGTH = 3
MAX_PROMPT_LENGTH = 500

# YAML Loading Setup
CONFIG_DIR = BASE_DIR / "config"
PROMPTS_FILE = CONFIG_DIR / "prompts.yaml"


# ================================== load_yaml(): Loads data from a YAML file ==================================
def load_yaml(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        logger.critical(f"CRITICAL: Config file not found: {file_path}")
        sys.exit(1)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if data is None:
            logger.warning(f"YAML empty: {file_path}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"YAML {file_path} not dict.")
            return {}
        return data
    except yaml.YAMLError as e:
        logger.critical(f"CRITICAL: YAML parse error {file_path}: {e}")
        sys.exit(1)
# ================================== load_yaml() end ==================================
logger.info(f"Loading prompts: {PROMPTS_FILE}")
_prompts_data = load_yaml(PROMPTS_FILE)

MOOD_SYNONYMS: Dict[str, List[str]] = {str(k): [str(s).lower() for s in v] for k, v in _prompts_data.get('mood_synonyms', {}).items()}
PREDEFINED_MOODS: List[str] = [str(m) for m in _prompts_data.get('moods', [])] or list(MOOD_SYNONYMS)
SCENE_PROMPT_TEMPLATE: str = _prompts_data.get('scene_prompt_template', 'Scene: {scene}\nMood: {mood}')
PROMO_NARRATIVES: Dict[str, Dict[str, str]] = _prompts_data.get('promo_narratives', {})
PROMO_REQUIREMENTS_TEMPLATE: str = _prompts_data.get('promo_requirements', '')
PROMO_LANGUAGE_NAMES: Dict[str, str] = _prompts_data.get('promo_language_names', {'ru': 'русский', 'en': 'английский'})
FALLBACK_PROMO: Dict[str, str] = _prompts_data.get('fallback_promo', {})
PROMO_LINKS: List[Dict[str, str]] = _prompts_data.get('promo_links', [])
CARD_DEFAULTS: Dict[str, str] = _prompts_data.get('card_defaults', {})
logger.info(f"Loaded {len(PREDEFINED_MOODS)} moods, {sum(len(v) for v in PROMO_NARRATIVES.values())} promo narratives.")
if not PROMO_NARRATIVES:
    logger.warning("YAML Warning: No promo narratives found.")


# ================================== validate_config(): Lists missing required settings ==================================
def validate_config() -> List[str]:
    problems = []
    if not TELEGRAM_BOT_TOKEN:
        problems.append("TELEGRAM_BOT_TOKEN is not set.")
    if not GEMINI_API_KEYS:
        problems.append("GEMINI_API_KEYS (or GEMINI_API_KEY) is not set.")
    if DAILY_GENERATION_LIMIT <= 0:
        problems.append("DAILY_GENERATION_LIMIT must be positive.")
    if not ADMIN_ID_INT:
        logger.warning("ADMIN_TELEGRAM_ID not set: /status and auth escalation disabled.")
    if not STORAGE_BUCKET:
        logger.warning("STORAGE_BUCKET not set: shares fall back to text only.")
    return problems
# ================================== validate_config() end ==================================


# Configure Logging Level
if IS_DEBUG:
    logging.getLogger().setLevel(logging.DEBUG)
    logger.info("Logging level: DEBUG.")
    logging.getLogger("telegram").setLevel(logging.INFO)
else:
    logging.getLogger().setLevel(logging.INFO)
    logging.getLogger("telegram").setLevel(logging.INFO)

logger.info(f"Gemini Image Model: {GEMINI_IMAGE_MODEL}")
logger.info(f"Gemini Text Model: {GEMINI_TEXT_MODEL}")
logger.info(f"Admission: limit={DAILY_GENERATION_LIMIT}/day ({QUOTA_TIMEZONE_NAME}), cooldown={GENERATION_COOLDOWN_SECONDS}s, channel={REQUIRED_CHANNEL_ID or '-'}")

# config.py end
