"""User-supplied file name validation.

WHY: The file name arrives as free chat text. Blank replies are almost
always mistakes, and a name that already mentions the output format
collides with the extension the bot adds itself.

RULES:
- Surrounding whitespace is ignored
- An empty name (after trimming) is invalid
- A name containing RESERVED_FILENAME_SUBSTRING (case-sensitive) is invalid
- No length limit and no character-set restriction
"""

from __future__ import annotations

from image_pdf_bot.config import RESERVED_FILENAME_SUBSTRING


def normalize_filename(name: str) -> str:
    """Return the file name as it will be stored (whitespace trimmed)."""
    return name.strip()


def validate_filename(name: str) -> bool:
    """Return True if ``name`` is acceptable as a document file name."""
    trimmed = normalize_filename(name)
    if not trimmed:
        return False
    if RESERVED_FILENAME_SUBSTRING in trimmed:
        return False
    return True
