import os

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "ShoppingMallDB")

# JWT Config
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))  # 24 hours
PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "10"))

# HTTP
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Storefront client
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api")
DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "ko")
CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", "2"))

# Payment gateway (hosted widget)
PAYMENT_MERCHANT_ID = os.getenv("PAYMENT_MERCHANT_ID", "")
PAYMENT_PG = os.getenv("PAYMENT_PG", "html5_inicis")
PAYMENT_PAY_METHOD = os.getenv("PAYMENT_PAY_METHOD", "card")

# Fixed pricing policy
TAX_RATE = 0.08
SHIPPING_FEE = 0
