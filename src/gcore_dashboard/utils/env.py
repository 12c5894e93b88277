"""Environment variable loading utilities."""

import os
from pathlib import Path

from dotenv import load_dotenv


def load_env(env_file: str | Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Uses the standard dotenv search (current directory and parents) unless an
    explicit path is given. Also sets up UTF-8 encoding environment variables
    for Windows compatibility.

    Returns:
        True if a .env file was found and loaded
    """
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    os.environ.setdefault("PYTHONUTF8", "1")

    if env_file is not None:
        return load_dotenv(Path(env_file))
    return load_dotenv()
