from __future__ import annotations

from dataclasses import dataclass, field

from jobportal.errors import PayloadTooLarge, UnsupportedMediaType, ValidationFailed


DOCUMENT_CATEGORIES = ("resume", "cover_letter")
AVATAR_CATEGORY = "avatar"

DOCUMENT_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
    }
)
AVATAR_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})


@dataclass(frozen=True)
class UploadPolicy:
    document_max_bytes: int = 10 * 1024 * 1024
    avatar_max_bytes: int = 5 * 1024 * 1024
    document_types: frozenset[str] = field(default=DOCUMENT_CONTENT_TYPES)
    avatar_types: frozenset[str] = field(default=AVATAR_CONTENT_TYPES)

    def limits_for(self, category: str) -> tuple[int, frozenset[str]]:
        if category in DOCUMENT_CATEGORIES:
            return self.document_max_bytes, self.document_types
        if category == AVATAR_CATEGORY:
            return self.avatar_max_bytes, self.avatar_types
        raise ValidationFailed(f"Unknown upload category: {category}")


def normalize_content_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _format_mb(size: int) -> str:
    return f"{size / (1024 * 1024):g}MB"


def validate_upload(policy: UploadPolicy, category: str, size: int, content_type: str | None) -> str:
    """Check an upload against the policy for its category.

    Only the declared MIME type is consulted, never the filename extension.
    Returns the normalized content type.
    """
    max_bytes, allowed = policy.limits_for(category)
    normalized = normalize_content_type(content_type)
    if normalized not in allowed:
        raise UnsupportedMediaType(
            f"{category} content type '{normalized or 'unknown'}' is not allowed; "
            f"expected one of: {', '.join(sorted(allowed))}"
        )
    if size > max_bytes:
        raise PayloadTooLarge(f"{category} is {size} bytes, which exceeds the {_format_mb(max_bytes)} limit")
    return normalized
