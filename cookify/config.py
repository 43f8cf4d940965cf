"""Configuration and session management for Cookify."""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# App directories
APP_NAME = "cookify"
CONFIG_DIR = Path(os.getenv("COOKIFY_HOME", str(Path.home() / f".{APP_NAME}")))
RECIPES_FILE = CONFIG_DIR / "recipes.json"
SHOPPING_LISTS_FILE = CONFIG_DIR / "shopping_lists.json"
SESSION_FILE = CONFIG_DIR / "session.json"

# Ensure config directory exists
CONFIG_DIR.mkdir(parents=True, exist_ok=True)

# External food databases
OPENFOODFACTS_SEARCH_URL = "https://fr.openfoodfacts.org/cgi/search.pl"
USDA_API_URL = "https://api.nal.usda.gov/fdc/v1"
USER_AGENT = "Cookify-App/1.0 (contact@cookify.app)"

FOOD_PROVIDERS = ("openfoodfacts", "usda")
DEFAULT_HTTP_TIMEOUT = 10.0


def get_http_timeout() -> float:
    """Get the timeout (seconds) used for external API calls."""
    value = os.getenv("COOKIFY_HTTP_TIMEOUT")
    if not value:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(value)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT


def get_food_provider() -> str:
    """Get the external food database to query when local results run short."""
    provider = os.getenv("COOKIFY_FOOD_PROVIDER", "openfoodfacts").strip().lower()
    if provider not in FOOD_PROVIDERS:
        return "openfoodfacts"
    return provider


def get_usda_api_key() -> str | None:
    """Get the USDA FoodData Central API key, if configured."""
    return os.getenv("USDA_API_KEY") or None


def get_log_level() -> str:
    return os.getenv("COOKIFY_LOG_LEVEL", "WARNING").upper()


def get_current_user() -> tuple[str | None, str | None]:
    """Get the signed-in user (id, display name) from environment or session file."""
    user_id = os.getenv("COOKIFY_USER")
    if user_id:
        return user_id, os.getenv("COOKIFY_USER_NAME") or user_id

    if SESSION_FILE.exists():
        try:
            with open(SESSION_FILE, encoding="utf-8") as f:
                session = json.load(f)
                return session.get("user_id"), session.get("display_name")
        except (OSError, json.JSONDecodeError):
            pass

    return None, None


def save_current_user(user_id: str, display_name: str | None = None) -> None:
    """Remember which user the CLI acts as."""
    with open(SESSION_FILE, "w", encoding="utf-8") as f:
        json.dump({"user_id": user_id, "display_name": display_name or user_id}, f)
    # Set restrictive permissions
    SESSION_FILE.chmod(0o600)


def clear_current_user() -> None:
    """Remove the saved session."""
    if SESSION_FILE.exists():
        SESSION_FILE.unlink()
