"""
Shared validators for input sanitization.
"""

from typing import Optional
from urllib.parse import urlparse

# Hosts that must never appear in a product image URL (SSRF prevention)
BLOCKED_HOSTS = (
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "10.",
    "192.168.",
    "169.254.",
    "[::1]",
    "metadata.google",
)

MAX_URL_LENGTH = 2048


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a product image URL.

    Returns:
        The stripped URL, or None for empty input.

    Raises:
        ValueError: If the URL is not http(s) or points to an internal host.
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None

    if len(url) > MAX_URL_LENGTH:
        raise ValueError(f"URL demasiado larga (máximo {MAX_URL_LENGTH} caracteres)")

    parsed = urlparse(url)
    if parsed.scheme.lower() not in ("http", "https"):
        raise ValueError("Solo se permiten URLs HTTP/HTTPS")

    host = parsed.netloc.lower()
    if not host:
        raise ValueError("URL sin host válido")
    if any(blocked in host for blocked in BLOCKED_HOSTS):
        raise ValueError("URL interna no permitida")

    return url


def escape_like_pattern(value: str) -> str:
    """
    Escape LIKE wildcards so user search text matches literally.

    Use with `column.ilike(pattern, escape="\\\\")`.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def sanitize_search_term(term: str | None, max_length: int = 100) -> str:
    """Trim and bound a free-text search term. Empty string means no filter."""
    if not term:
        return ""
    return " ".join(term.split())[:max_length]
