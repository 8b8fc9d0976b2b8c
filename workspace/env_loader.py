"""Shared .env loading helper with encoding fallbacks."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from workspace.text_io import read_text_with_fallback


def load_dotenv_with_fallback(
    dotenv_path: Path | str,
    *,
    override: bool = False,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Load dotenv content with robust decoding.

    This avoids startup crashes when ~/.quill/.env was saved by an editor
    using a legacy code page.
    """
    path = Path(dotenv_path).expanduser()
    if not path.exists():
        return False

    text, encoding_used = read_text_with_fallback(path)

    changed = load_dotenv(stream=io.StringIO(text), override=override)

    if logger and encoding_used not in ("utf-8", "utf-8-sig"):
        logger.warning(
            "Loaded %s with fallback encoding '%s'. Consider saving it as UTF-8.",
            path,
            encoding_used,
        )

    return changed
