"""
GoldBod Assay Office - Centralized Configuration
=================================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")

    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)

    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
JWT_SECRET = os.getenv("JWT_SECRET")

if not JWT_SECRET:
    print("[ERROR] Critical: JWT_SECRET missing in .env")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES") or 60 * 12)
SESSION_IDLE_MINUTES = int(os.getenv("SESSION_IDLE_MINUTES") or 30)
AUTH_COOKIE = "auth-token"
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS") or 12)

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")


# ==========================================
# ⚖️ Valuation & Levies
# ==========================================
GRAMS_PER_TROY_OUNCE = 31.1035

# Regulator service rate, percent of the assay GHS value
INVOICE_RATE_PERCENT = float(os.getenv("INVOICE_RATE_PERCENT") or 0.258)

NHIL_RATE = 0.025
GETFUND_RATE = 0.025
COVID_RATE = 0.01
VAT_RATE = 0.15


# ==========================================
# 📊 Reports
# ==========================================
REPORT_ROW_LIMIT = 1000
FEE_ROW_LIMIT = 2000


# ==========================================
# 💱 External Price Feeds
# ==========================================
PRICE_FEED_ENABLED = os.getenv("PRICE_FEED_ENABLED", "false").lower() == "true"
PRICE_FEED_URL = os.getenv("PRICE_FEED_URL", "https://api.metals.live/v1/spot")
EXCHANGE_FEED_URL = os.getenv("EXCHANGE_FEED_URL", "https://api.exchangerate-api.com/v4/latest/USD")
PRICE_FEED_TIMEOUT = 5  # seconds


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
REQUEST_LOG_RETENTION_DAYS = 30
TEMPLATE_DIR = os.getenv("TEMPLATE_DIR", os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates"))
