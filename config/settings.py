"""
Ivay Shop - Centralized Configuration
======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

if os.getenv("DATABASE_URL"):
    DATABASE_URL = os.getenv("DATABASE_URL")
elif all([DB_USER, DB_PASSWORD, DB_NAME]):
    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
else:
    DATABASE_URL = "sqlite:///./ivay.db"

IS_SQLITE = DATABASE_URL.startswith("sqlite")


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Pagination (products listing)
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE") or "20")
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE") or "100")

# Column sizes shared by models and request schemas
PAYMENT_METHOD_MAX_LENGTH = 50
PRODUCT_NAME_MAX_LENGTH = 100
