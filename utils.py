"""Utility functions for the TMDb caching proxy."""

import hashlib
import re
from typing import Dict, Optional
from config import logger

IMAGE_SIZE_PATTERN = re.compile(r'^(w\d+|h\d+|original)$')
IMAGE_FILE_PATTERN = re.compile(r'^[a-zA-Z0-9_\-]+\.(jpg|jpeg|png|webp|svg)$', re.IGNORECASE)


def build_cache_key(path: str, authorization: Optional[str] = None, include_auth: bool = False) -> str:
    """
    Build the cache key for a proxied request.

    The key is the request path with its query string. When include_auth is
    set, a digest of the Authorization header is prepended so different
    identities never share entries.
    """
    if not include_auth:
        return path

    digest = hashlib.sha256((authorization or "").encode("utf-8")).hexdigest()[:16]
    return f"{digest}:{path}"


def build_upstream_headers(authorization: Optional[str], default_token: Optional[str] = None) -> Dict[str, str]:
    """Headers sent to TMDb, forwarding the caller's Authorization if present."""
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if authorization:
        headers["Authorization"] = authorization
    elif default_token:
        headers["Authorization"] = f"Bearer {default_token}"
    return headers


def validate_image_path(size: str, file_name: str) -> str:
    """
    Validate a TMDb image size and file name and build the CDN path.
    Returns empty string if either part is invalid.
    """
    size = str(size).strip()
    file_name = str(file_name).strip()

    if not IMAGE_SIZE_PATTERN.match(size):
        logger.warning(f"Invalid image size: {size[:20]}")
        return ""

    if not IMAGE_FILE_PATTERN.match(file_name):
        logger.warning(f"Invalid image file name: {file_name[:50]}")
        return ""

    # Security: reject anything that could point outside the CDN
    suspicious_patterns = [
        r'http', r'<script', r'javascript', r'data:', r'\.\.', r'www\.'
    ]
    for pattern in suspicious_patterns:
        if re.search(pattern, file_name, re.IGNORECASE):
            logger.error(f"Security: Rejected suspicious image path: {file_name[:50]}")
            return ""

    return f"/t/p/{size}/{file_name}"
