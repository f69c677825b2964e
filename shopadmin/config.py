"""Configuration and constants for the admin client."""

import os
from pathlib import Path
from typing import Dict, Tuple

from dotenv import load_dotenv

__all__ = [
    "API_BASE_URL",
    "REQUEST_TIMEOUT",
    "TOKEN_PATH",
    "LOG_DIR",
    "ENDPOINTS",
    "HEADERS",
    "LOW_STOCK_THRESHOLD",
    "MEDIUM_STOCK_THRESHOLD",
    "RECENT_ORDERS_LIMIT",
    "DEFAULT_LOCALE",
    "SUPPORTED_LOCALES",
    "ORDER_STATUSES",
]

_PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file at the project root
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

# Backend API
API_BASE_URL = os.getenv("SHOPADMIN_API_BASE_URL", "http://localhost:5000/api").rstrip("/")

# Request timeout (seconds)
REQUEST_TIMEOUT = float(os.getenv("SHOPADMIN_API_TIMEOUT", "10"))

# Durable client storage for the session token
TOKEN_PATH = os.getenv(
    "SHOPADMIN_TOKEN_PATH",
    str(Path.home() / ".shopadmin" / "session.json"),
)

# Log directory
LOG_DIR = Path(os.getenv("SHOPADMIN_LOG_DIR", str(_PROJECT_ROOT / "logs")))

# Resource group path prefixes
ENDPOINTS: Dict[str, str] = {
    "auth": "/auth",
    "health": "/health",
    "products": "/products",
    "orders": "/orders",
    "shipping": "/shipping/admin",
    "sizes": "/sizes",
}

HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Stock levels below these are flagged on the dashboard and stock pages
LOW_STOCK_THRESHOLD = 5
MEDIUM_STOCK_THRESHOLD = 10

RECENT_ORDERS_LIMIT = 5

# Localization
DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES: Tuple[str, ...] = ("en", "vi")

ORDER_STATUSES: Tuple[str, ...] = ("Pending", "Shipped", "Completed")
