"""Centralized configuration for the admin web app."""

import os

from shopadmin.config import API_BASE_URL

# Flask app settings (allow env overrides; default debug off for safety)
FLASK_HOST = os.getenv("FLASK_HOST", "127.0.0.1")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "5001")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Signs the session cookie that carries the admin token
SECRET_KEY = os.getenv("SHOPADMIN_SECRET_KEY", "dev-only-change-me")

# Blank rows offered on the product form for adding variations, sizes and specs
EXTRA_VARIATION_ROWS = int(os.getenv("EXTRA_VARIATION_ROWS", "1"))
EXTRA_SIZE_ROWS = int(os.getenv("EXTRA_SIZE_ROWS", "2"))
EXTRA_SPECIFICATION_ROWS = int(os.getenv("EXTRA_SPECIFICATION_ROWS", "2"))

__all__ = [
    "API_BASE_URL",
    "FLASK_HOST",
    "FLASK_PORT",
    "FLASK_DEBUG",
    "SECRET_KEY",
    "EXTRA_VARIATION_ROWS",
    "EXTRA_SIZE_ROWS",
    "EXTRA_SPECIFICATION_ROWS",
]
