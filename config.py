"""
Application settings

Values come from the environment, optionally loaded from a .env file in the
project root. Both apps share one MongoDB server but use separate databases.
"""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
CARPARTS_DATABASE_NAME = os.getenv("CARPARTS_DATABASE_NAME", "carparts")
RESTAURANT_DATABASE_NAME = os.getenv("RESTAURANT_DATABASE_NAME", "restaurant")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me-dev-secret-change-me")
JWT_ALGORITHM = "HS256"
CARPARTS_TOKEN_DAYS = int(os.getenv("CARPARTS_TOKEN_DAYS", 30))
RESTAURANT_TOKEN_DAYS = int(os.getenv("RESTAURANT_TOKEN_DAYS", 1))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

TAX_RATE = float(os.getenv("TAX_RATE", 0.10))
SERVICE_CHARGE_RATE = float(os.getenv("SERVICE_CHARGE_RATE", 0.05))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
