import re
import uuid
from sqlalchemy.orm import Session


def generate_slug(text: str) -> str:
    """Convert text to a URL-safe slug: lowercase, hyphens, no special chars."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug


def generate_location_slug(city: str, state: str) -> str:
    """'Austin', 'TX' -> 'austin-tx'."""
    return generate_slug(f"{city} {state}")


def make_unique_slug(db: Session, column, text: str, max_length: int = 140) -> str:
    """
    Generate a slug unique within ``column`` (e.g. ``LocalListing.slug``),
    appending a short random suffix on collision.
    """
    base_slug = generate_slug(text)[:max_length].strip("-") or uuid.uuid4().hex[:8]
    slug = base_slug
    while db.query(column).filter(column == slug).first() is not None:
        slug = f"{base_slug}-{uuid.uuid4().hex[:6]}"
    return slug
