"""
Constants and configuration values for gfcli.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Font catalog API URLs
GWFH_API_BASE = "https://gwfh.mranftl.com/api"
FONT_LIST_URL = f"{GWFH_API_BASE}/fonts"
FONT_DETAIL_URL = f"{GWFH_API_BASE}/fonts/"
GOOGLE_FONTS_CSS_URL = "https://fonts.googleapis.com/css?family="

# Network settings
DEFAULT_REQUEST_TIMEOUT = 10  # seconds of inactivity before a request is aborted
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_CHUNK_SIZE = 8192
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
ALLOWED_URL_SCHEMES = ("http", "https")

# Cache configuration
APP_NAME = "gfcli"
CACHE_FILE_NAME = "cache.json"
CACHE_TTL_HOURS = 24
CACHE_TTL_MS = CACHE_TTL_HOURS * 60 * 60 * 1000

# Font formats and validation
DEFAULT_FONT_FORMAT = "ttf"
FONT_MIME_TYPES = frozenset({"application/font-sfnt", "font/woff2"})
FONT_FILE_EXTENSIONS = frozenset({".ttf", ".woff2"})
STAGING_DIR_NAME = "google-font-installer"

# Variant ids the catalog reports by name instead of weight
DEFAULT_VARIANT_ALIASES = {
    "400": "regular",
    "normal": "regular",
    "400italic": "italic",
    "normalitalic": "italic",
}

# System font folders (relative to the user's home directory)
LINUX_FONT_DIR = ".fonts"
MACOS_FONT_DIR = ("Library", "Fonts")
WINDOWS_FONT_NAMESPACE = "0x14"

# Configuration file names
CONFIG_FILE_NAME = "gfcli.yaml"

# Logging configuration
LOGGER_NAME = "gfcli"
LOG_FILE_NAME = "gfcli.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "GFCLI_LOG_LEVEL"
CONFIG_FILE_ENV_VAR = "GFCLI_CONFIG"
