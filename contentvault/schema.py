import re
from dataclasses import dataclass

from .constants import DEFAULT_CATEGORY
from .utils import normalize_text, timestamp_text

REQUIRED_FIELDS = ("title", "slug", "htmlContent")

_slug_re = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._~-]*$")


class ValidationError(ValueError):
    def __init__(self, message, missing=None):
        super().__init__(message)
        self.message = message
        self.missing = list(missing or [])


class SlugConflictError(ValueError):
    def __init__(self, slug):
        super().__init__(f"slug already in use: {slug}")
        self.slug = slug


class StorageError(Exception):
    pass


@dataclass
class ContentFields:
    """The operator-editable part of a content record."""

    title: str
    slug: str
    html_content: str
    category: str = DEFAULT_CATEGORY


@dataclass
class ContentRecord:
    id: str
    title: str
    slug: str
    category: str
    html_content: str
    created_at: str
    last_modified: str

    @classmethod
    def from_fields(cls, content_id, fields, created_at, last_modified):
        return cls(
            id=content_id,
            title=fields.title,
            slug=fields.slug,
            category=fields.category,
            html_content=fields.html_content,
            created_at=created_at,
            last_modified=last_modified,
        )

    @classmethod
    def from_dict(cls, doc):
        return cls(
            id=str(doc.get("id") or doc["_id"]),
            title=str(doc.get("title") or ""),
            slug=str(doc.get("slug") or ""),
            category=str(doc.get("category") or DEFAULT_CATEGORY),
            html_content=str(doc.get("htmlContent") or ""),
            created_at=timestamp_text(doc.get("createdAt")),
            last_modified=timestamp_text(doc.get("lastModified") or doc.get("createdAt")),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "category": self.category,
            "htmlContent": self.html_content,
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
        }


def _text_field(payload, key):
    value = payload.get(key)
    if not isinstance(value, str):
        return ""
    return value


def validate_content_payload(payload):
    """Check a create-or-update request body.

    Returns ``(content_id, fields)``; ``content_id`` is ``None`` for a create.
    Accepts the legacy ``_id`` key as the identifier.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")

    title = normalize_text(_text_field(payload, "title"))
    slug = _text_field(payload, "slug").strip()
    html_content = _text_field(payload, "htmlContent")

    missing = []
    if not title:
        missing.append("title")
    if not slug:
        missing.append("slug")
    if not html_content.strip():
        missing.append("htmlContent")
    if missing:
        raise ValidationError("Title, slug, and HTML content are required.", missing=missing)

    if not _slug_re.match(slug):
        raise ValidationError("Slug may only contain letters, digits, hyphens and underscores.")

    category = normalize_text(_text_field(payload, "category")) or DEFAULT_CATEGORY

    content_id = payload.get("id") or payload.get("_id") or None
    if content_id is not None:
        content_id = str(content_id)

    fields = ContentFields(title=title, slug=slug, html_content=html_content, category=category)
    return content_id, fields
