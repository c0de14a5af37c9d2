# backend/therabridge/config.py
from __future__ import annotations
import os
from dotenv import load_dotenv

load_dotenv()

ASYNC_DB_URL = os.getenv("ASYNC_DATABASE_URL", "postgresql+asyncpg://localhost/therabridge")

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT_S = float(os.getenv("OPENAI_TIMEOUT_S", "30"))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

INVITE_TOKEN_TTL_DAYS = int(os.getenv("INVITE_TOKEN_TTL_DAYS", "7"))

# Seats per subscription tier
PLAN_MAX_CLIENTS = {
    "starter": 5,
    "professional": 25,
    "practice": 100,
    "enterprise": 9999,
}
SUBSCRIPTION_PERIOD_DAYS = 30
