"""Media format classification.

Maps file extensions to media categories. All functions are pure.
"""

from __future__ import annotations

from fcs.domain.enums import MediaCategory

VIDEO_FORMATS: frozenset[str] = frozenset({"mp4", "avi", "mov", "mkv"})
AUDIO_FORMATS: frozenset[str] = frozenset({"mp3", "wav", "flac", "aac"})
IMAGE_FORMATS: frozenset[str] = frozenset({"jpg", "jpeg", "png", "gif", "webp"})

# Stable display order for listings
_DISPLAY_ORDER: dict[MediaCategory, tuple[str, ...]] = {
    MediaCategory.VIDEO: ("mp4", "avi", "mov", "mkv"),
    MediaCategory.AUDIO: ("mp3", "wav", "flac", "aac"),
    MediaCategory.IMAGE: ("jpg", "jpeg", "png", "gif", "webp"),
}


def _normalize(extension: str | None) -> str:
    if not extension:
        return ""
    return extension.strip().lstrip(".").casefold()


def classify(extension: str | None) -> MediaCategory:
    """Classify a file extension.

    Args:
        extension: Extension with or without a leading dot, any case.

    Returns:
        The media category, or MediaCategory.UNSUPPORTED.
    """
    ext = _normalize(extension)
    if ext in VIDEO_FORMATS:
        return MediaCategory.VIDEO
    if ext in AUDIO_FORMATS:
        return MediaCategory.AUDIO
    if ext in IMAGE_FORMATS:
        return MediaCategory.IMAGE
    return MediaCategory.UNSUPPORTED


def is_video(extension: str | None) -> bool:
    return classify(extension) is MediaCategory.VIDEO


def is_audio(extension: str | None) -> bool:
    return classify(extension) is MediaCategory.AUDIO


def is_image(extension: str | None) -> bool:
    return classify(extension) is MediaCategory.IMAGE


def is_supported(extension: str | None) -> bool:
    """Returns True if the extension belongs to any supported category."""
    return classify(extension) is not MediaCategory.UNSUPPORTED


def get_extension(filename: str | None) -> str:
    """Return the lower-cased text after the last dot, or "" if there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].casefold()


def get_basename(filename: str) -> str:
    """Return the filename without its final extension."""
    if "." not in filename:
        return filename
    return filename.rsplit(".", 1)[0]


def supported_formats() -> dict[str, list[str]]:
    """Return supported formats grouped by category name."""
    return {
        category.value: list(formats) for category, formats in _DISPLAY_ORDER.items()
    }
