"""Configuration and logging setup for Kiln."""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from PIL import Image

DEFAULTS = {
    "image_format": "JPEG",
    "image_quality": 24,
    "audio_extensions": [".mp3"],
    "strict_parse": True,
    "workers": 4,
}


def eprint(*args, **kwargs):
    """Print to stderr."""
    print(*args, file=sys.stderr, **kwargs)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Send the 'kiln' logger to stderr; DEBUG when verbose."""
    logger = logging.getLogger("kiln")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    return logger


def _int_or_raw(value: Optional[str], default: int):
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        return value


def _bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _extensions(value: Optional[str]) -> List[str]:
    if value is None:
        return list(DEFAULTS["audio_extensions"])
    exts = []
    for ext in value.split(","):
        ext = ext.strip().lower()
        if ext:
            exts.append(ext if ext.startswith(".") else f".{ext}")
    return exts


def load_config(env_file: Optional[str] = None) -> dict:
    """
    Load configuration from .env file.

    Args:
        env_file: Path to .env file. Defaults to .env in current directory.

    Returns:
        Dictionary of configuration values.
    """
    if env_file is None:
        env_file = ".env"

    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
        eprint(f"Loaded environment from {env_path.resolve()}")
    else:
        eprint(
            f"Warning: .env file not found at {env_path.resolve()} "
            "- falling back to process env."
        )

    return {
        # Cover image re-encoding
        "image_format": (os.getenv("KILN_IMAGE_FORMAT") or DEFAULTS["image_format"]).upper(),
        "image_quality": _int_or_raw(os.getenv("KILN_IMAGE_QUALITY"), DEFAULTS["image_quality"]),
        # Files a section header may select
        "audio_extensions": _extensions(os.getenv("KILN_AUDIO_EXTENSIONS")),
        # Parsing and diffing
        "strict_parse": _bool(os.getenv("KILN_STRICT_PARSE"), DEFAULTS["strict_parse"]),
        "workers": _int_or_raw(os.getenv("KILN_WORKERS"), DEFAULTS["workers"]),
    }


def validate_config(config: dict) -> List[str]:
    """
    Validate configuration and return a list of problems.

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        List of problem descriptions (empty if valid).
    """
    problems = []

    Image.init()
    if config.get("image_format") not in Image.SAVE:
        problems.append(
            f"KILN_IMAGE_FORMAT: Pillow cannot write {config.get('image_format')!r}"
        )

    quality = config.get("image_quality")
    if not isinstance(quality, int) or not 1 <= quality <= 95:
        problems.append(f"KILN_IMAGE_QUALITY: expected 1-95, got {quality!r}")

    if not config.get("audio_extensions"):
        problems.append("KILN_AUDIO_EXTENSIONS: no extensions given")

    workers = config.get("workers")
    if not isinstance(workers, int) or workers < 1:
        problems.append(f"KILN_WORKERS: expected a positive integer, got {workers!r}")

    return problems
