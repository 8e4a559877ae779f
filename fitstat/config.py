import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fitstat.db")

# JWT Configuration - CRITICAL: No default secret in production
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    JWT_SECRET = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = "HS256"
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "4"))
JWT_ISSUER = os.getenv("JWT_ISSUER", "fitstat-api")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "fitstat-app")

# Password reset links stay valid for one hour by default
PASSWORD_RESET_MAX_AGE = int(os.getenv("PASSWORD_RESET_MAX_AGE", "3600"))

# Stripe Configuration (REST API, no SDK)
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_API_URL = os.getenv("STRIPE_API_URL", "https://api.stripe.com/v1")
STRIPE_TIMEOUT = float(os.getenv("STRIPE_TIMEOUT", "30"))
# Smallest amount accepted by create-payment-intent, compared before the cents conversion
STRIPE_MIN_AMOUNT = 50

# Frontend base URL, used for CORS defaults and password reset links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000"
    ).split(",")
    if origin.strip()
]

# Rate limiting (see rate_limiter.py for the Redis connection settings)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
GLOBAL_RATE_LIMIT = int(os.getenv("GLOBAL_RATE_LIMIT", "100"))
GLOBAL_RATE_LIMIT_WINDOW = int(os.getenv("GLOBAL_RATE_LIMIT_WINDOW", "900"))  # 15 minutes

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
