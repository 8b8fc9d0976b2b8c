"""
Safe text file I/O for cross-platform encoding (especially Windows).

Documents opened in a project folder come from anywhere: UTF-8 with or without
a BOM, legacy cp1252 notes, or files with a few stray bytes.  Reads fall back
through a list of encodings instead of failing, and writes always produce
UTF-8 without translating line endings.
"""

from __future__ import annotations

import codecs
import io
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple, Union

DEFAULT_ENCODINGS: tuple[str, ...] = (
    "utf-8",
    "utf-8-sig",
    "cp1252",
    "latin-1",
)

# Defaults that avoid encoding crashes on Windows (cp1252) and odd bytes in content.
READ_DEFAULTS: dict[str, Any] = {
    "encoding": "utf-8",
    "errors": "replace",
}
WRITE_DEFAULTS: dict[str, Any] = {
    "encoding": "utf-8",
    "errors": "replace",
    "newline": "",
}


def decode_with_fallback(
    data: bytes,
    encodings: Optional[Iterable[str]] = None,
) -> Tuple[str, str]:
    """Decode bytes with the first encoding that works.

    Returns:
        (text, encoding_used)
    """
    encodings = tuple(encodings or DEFAULT_ENCODINGS)
    # plain utf-8 would keep the BOM as a leading \ufeff
    if data.startswith(codecs.BOM_UTF8) and "utf-8-sig" in encodings:
        encodings = ("utf-8-sig",) + tuple(e for e in encodings if e != "utf-8-sig")
    for encoding in encodings:
        try:
            return data.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    # Last resort: keep going and preserve as much content as possible.
    return data.decode("utf-8", errors="replace"), "utf-8-replace"


def read_text_with_fallback(
    path: Union[Path, str],
    encodings: Optional[Iterable[str]] = None,
) -> Tuple[str, str]:
    """Read a text file using fallback encodings.

    Returns:
        (text, encoding_used)
    """
    return decode_with_fallback(Path(path).read_bytes(), encodings=encodings)


def open_text(
    path: Union[Path, str],
    mode: str = "r",
    *,
    encoding: Optional[str] = None,
    errors: Optional[str] = None,
    newline: Optional[str] = None,
    **kwargs: Any,
) -> io.TextIOWrapper:
    """Open a text file with UTF-8 and replace errors by default.

    mode: "r", "w", "a", "r+", etc.
    encoding: default "utf-8"
    errors: default "replace" (replace bad bytes instead of raising)
    newline: default "" for write/append (line endings written as given)
    """
    if encoding is None:
        encoding = READ_DEFAULTS["encoding"] if "r" in mode else WRITE_DEFAULTS["encoding"]
    if errors is None:
        errors = READ_DEFAULTS["errors"] if "r" in mode else WRITE_DEFAULTS["errors"]
    if newline is None and ("w" in mode or "a" in mode):
        newline = WRITE_DEFAULTS["newline"]
    return open(  # noqa: SIM115
        path,
        mode,
        encoding=encoding,
        errors=errors,
        newline=newline if newline is not None else "",
        **kwargs,
    )


def write_text(path: Union[Path, str], content: str) -> int:
    """Write UTF-8 text and return the number of bytes on disk."""
    with open_text(path, "w") as f:
        f.write(content)
        f.flush()
    return Path(path).stat().st_size
