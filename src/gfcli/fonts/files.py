"""
File helpers for font retrieval: content sniffing, validation and placement moves.
"""

import os
import shutil
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlsplit

from gfcli.constants import FONT_FILE_EXTENSIONS, FONT_MIME_TYPES
from gfcli.exceptions import CorruptedFontError, PlacementError
from gfcli.log_utils import logger

from .interfaces import Pathish

# (offset, signature, mime); first match wins
_SIGNATURES: Tuple[Tuple[int, bytes, str], ...] = (
    (0, b"\x00\x01\x00\x00", "application/font-sfnt"),
    (0, b"true", "application/font-sfnt"),
    (0, b"OTTO", "application/font-sfnt"),
    (0, b"wOF2", "font/woff2"),
    (0, b"wOFF", "font/woff"),
    (0, b"ttcf", "font/collection"),
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF8", "image/gif"),
    (0, b"%PDF", "application/pdf"),
    (0, b"PK\x03\x04", "application/zip"),
    (0, b"\x1f\x8b", "application/gzip"),
)


def sniff_content_type(data: bytes) -> Optional[str]:
    """
    Detect a MIME type from the leading bytes of a payload.

    Returns:
        The detected MIME type, or None when no known signature matches.
    """
    for offset, signature, mime in _SIGNATURES:
        if data[offset : offset + len(signature)] == signature:
            return mime
    return None


def is_valid_font(content_type: Optional[str], file_path: Pathish) -> bool:
    """
    Accept a file whose sniffed type is a known font MIME or whose extension is .ttf/.woff2.
    """
    if content_type and content_type in FONT_MIME_TYPES:
        return True
    return Path(file_path).suffix.lower() in FONT_FILE_EXTENSIONS


def remote_extension(url: str) -> str:
    """
    Return the file extension of the last path segment of `url` (e.g. ".ttf").
    """
    return os.path.splitext(os.path.basename(urlsplit(url).path))[1]


def remove_quietly(path: Pathish) -> None:
    """
    Delete `path` if it exists; OS errors are logged at debug level and suppressed.
    """
    try:
        Path(path).unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Error removing {path}: {e}")


def validate_staged_file(staged_path: Path, content_type: Optional[str]) -> Path:
    """
    Keep a staged download only if it looks like a font.

    Raises:
        CorruptedFontError: If the file fails validation; the staged file is deleted first.
    """
    if is_valid_font(content_type, staged_path):
        return staged_path
    remove_quietly(staged_path)
    raise CorruptedFontError(
        "Downloaded file is corrupted",
        path=str(staged_path),
        details=f"content type {content_type or 'unknown'}",
    )


def ensure_folder(folder: Optional[Pathish]) -> Path:
    """
    Resolve a destination folder to an absolute path and create it if missing.

    An empty folder means the current working directory (or the home directory when
    the working directory cannot be determined).

    Raises:
        PlacementError: If the folder cannot be created.
    """
    if not folder:
        try:
            folder = os.getcwd()
        except OSError:
            folder = Path.home()
    abs_folder = Path(folder).expanduser().resolve()
    try:
        abs_folder.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PlacementError(
            f"Error while creating folder {abs_folder}", path=str(abs_folder), details=str(e)
        ) from e
    return abs_folder


def move_into(staged_path: Path, dest_folder: Optional[Pathish]) -> Path:
    """
    Move a staged file into `dest_folder`, keeping its file name and replacing any existing file.

    Raises:
        PlacementError: If the folder cannot be created or the move fails.
    """
    folder = ensure_folder(dest_folder)
    file_name = staged_path.name.strip() or "font.ttf"
    target = folder / file_name
    try:
        shutil.move(str(staged_path), str(target))
    except (OSError, shutil.Error) as e:
        raise PlacementError(
            "Something went wrong writing the file.", path=str(target), details=str(e)
        ) from e
    logger.debug(f"Moved {staged_path} to {target}")
    return target
