"""
Environment configuration.

Values are read once at import time; a local `.env` file is honoured
for development.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Supabase (remote cart records, auth)
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

# Upstash Redis (session-local cart storage)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

CARTS_TABLE = os.environ.get("CARTS_TABLE", "carts")
CART_STORAGE_TTL = int(os.environ.get("CART_STORAGE_TTL", str(30 * 86400)))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# In-memory cart sessions; evicted sessions restore from session storage
CART_SESSION_IDLE_TTL = int(os.environ.get("CART_SESSION_IDLE_TTL", "3600"))
CART_MAX_SESSIONS = int(os.environ.get("CART_MAX_SESSIONS", "10000"))
