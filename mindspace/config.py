import os
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

# -----------------------------------------------------------------------------
# Load environment variables
# -----------------------------------------------------------------------------
load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"
CONFIG_PATH = os.getenv("CONFIG_PATH", str(DEFAULT_CONFIG_PATH))


# Sections every deployment must define; the rest fall back to code defaults
REQUIRED_SECTIONS = ("app", "logging")


def load_config(path: str = None) -> dict:
    """
    Read config.yaml. Startup aborts with SystemExit when the file is
    missing, unparseable, not a mapping, or lacks a required section.
    """
    path = Path(path or CONFIG_PATH)
    if not path.is_file():
        logging.error(f"❌ Config not found at {path}")
        raise SystemExit(f"Config not found: {path}")
    try:
        cfg = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        logging.error(f"❌ Error parsing {path}: {e}")
        raise SystemExit(f"Error parsing config: {e}")

    if not isinstance(cfg, dict):
        logging.error(f"❌ Config at {path} is empty or not a mapping")
        raise SystemExit(f"Config file is empty or invalid: {path}")
    missing = [name for name in REQUIRED_SECTIONS if not isinstance(cfg.get(name), dict)]
    if missing:
        logging.error(f"❌ Config at {path} is missing sections: {', '.join(missing)}")
        raise SystemExit(f"Config missing sections: {', '.join(missing)}")
    return cfg


config = load_config()

# Secrets live in the environment, not in config.yaml
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "")
FIREBASE_CREDENTIALS_JSON = os.getenv("FIREBASE_CREDENTIALS_JSON")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
