"""Utility functions for ChunkScribe."""

import os
import re
import logging
from typing import Optional
from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = ('.mp3', '.wav', '.m4a', '.ogg', '.flac')

_MIME_TYPES = {
    'mp3': 'audio/mpeg',
    'wav': 'audio/wav',
    'm4a': 'audio/mp4',
    'ogg': 'audio/ogg',
    'flac': 'audio/flac',
}

_LANGUAGE_NAMES = {
    'english': 'en',
    'armenian': 'hy',
    'spanish': 'es',
    'french': 'fr',
    'german': 'de',
    'italian': 'it',
    'portuguese': 'pt',
    'russian': 'ru',
    'japanese': 'ja',
    'chinese': 'zh',
}

_ISO_CODE = re.compile(r'^[a-z]{2}(-[a-z]{2,4})?$', re.IGNORECASE)
_NUMERIC_SUFFIX = re.compile(r'_(\d+)$')

def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e

def is_audio_file(filename: str) -> bool:
    """Checks the extension against the supported audio formats (case-insensitive)."""
    return os.path.splitext(filename)[1].lower() in AUDIO_EXTENSIONS

def mime_type_for(path: str) -> str:
    """
    Guesses the audio MIME type from a file extension.

    Args:
        path: File path or name.

    Returns:
        A MIME type such as 'audio/mpeg'. Unknown extensions map to 'audio/<ext>'.
    """
    ext = os.path.splitext(path)[1].lstrip('.').lower()
    return _MIME_TYPES.get(ext, f"audio/{ext or 'octet-stream'}")

def segment_number(filename: str, prefix: str) -> Optional[int]:
    """
    Extracts the numeric suffix from a segment filename such as 'chunk_a_007.mp3'.

    Returns None if the name does not start with '<prefix>_' or the suffix is not numeric.
    """
    stem = os.path.splitext(os.path.basename(filename))[0]
    if not stem.startswith(f"{prefix}_"):
        return None
    match = _NUMERIC_SUFFIX.search(stem)
    if not match or match.start() != len(prefix):
        return None
    return int(match.group(1))

def normalize_language_code(value: Optional[str], default: str = 'en') -> str:
    """
    Turns a language code or common language name into a two-letter code.

    Args:
        value: e.g. 'en', 'en-US', 'Armenian'. Empty values yield the default.
        default: Code returned when the value is not recognised.

    Returns:
        A lowercase two-letter language code.
    """
    language = (value or '').strip().lower()
    if not language:
        return default
    if _ISO_CODE.match(language):
        return language[:2]
    return _LANGUAGE_NAMES.get(language, default)

def title_from_name(base_name: str) -> str:
    """'team_sync_call' -> 'Team Sync Call'"""
    return re.sub(r'\b\w', lambda m: m.group(0).upper(), base_name.replace('_', ' '))
