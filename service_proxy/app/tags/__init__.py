"""
Tag handling for upstream identifiers.
"""

from .normalizer import TAG_ALPHABET, TAG_MARKER, normalize_tag, validate_tag

__all__ = [
    "TAG_ALPHABET",
    "TAG_MARKER",
    "normalize_tag",
    "validate_tag",
]
