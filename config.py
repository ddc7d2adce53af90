"""Configuration and constants for the TMDb caching proxy."""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Logging configuration
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=os.getenv("LOG_LEVEL", "INFO").upper()
)
logger = logging.getLogger("tmdb_proxy")

# TMDb API configuration
TMDB_BASE_URL = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org")
TMDB_IMAGE_BASE_URL = os.getenv("TMDB_IMAGE_BASE_URL", "https://image.tmdb.org")

# Used only when the caller sends no Authorization header
TMDB_API_TOKEN = os.getenv("TMDB_API_TOKEN")

# Timeouts (in seconds)
TMDB_TIMEOUT = float(os.getenv("TMDB_TIMEOUT", "10.0"))

# Cache configuration
MAX_CACHE_SIZE = int(os.getenv("MAX_CACHE_SIZE", "1000"))
CACHE_DURATION = float(os.getenv("CACHE_DURATION", "600"))  # 10 minutes
CACHE_KEY_INCLUDE_AUTH = os.getenv("CACHE_KEY_INCLUDE_AUTH", "false").lower() in ("1", "true", "yes")

# CORS
ALLOWED_ORIGINS = ["*"]
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
