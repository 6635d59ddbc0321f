import os
from decimal import Decimal


def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


DB_PASSWORD = get_secret('db_password')
TOKEN_SIGNING_KEY = get_secret('token_signing_key')

POSTGRES_DB = os.getenv("POSTGRES_DB")
POSTGRES_USER = os.getenv("POSTGRES_USER")
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
REDIS_URL = os.getenv("REDIS_URL")

if os.getenv("DATABASE_URL"):
    DATABASE_URL = os.environ["DATABASE_URL"]
elif POSTGRES_USER and DB_PASSWORD and POSTGRES_DB:
    DATABASE_URL = f"postgresql+asyncpg://{POSTGRES_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{POSTGRES_DB}"
else:
    raise ValueError("Can't build DATABASE_URL")

DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
SQLITE_BUSY_TIMEOUT_MS = int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000"))

SERVICE_FEE_RATE = Decimal(os.getenv("SERVICE_FEE_RATE", "0.07"))
MAX_TICKETS_PER_PURCHASE = int(os.getenv("MAX_TICKETS_PER_PURCHASE", "10"))

STORAGE_RETRY_ATTEMPTS = int(os.getenv("STORAGE_RETRY_ATTEMPTS", "4"))
STORAGE_RETRY_WAIT_MULTIPLIER = float(os.getenv("STORAGE_RETRY_WAIT_MULTIPLIER", "0.05"))
STORAGE_RETRY_WAIT_MAX = float(os.getenv("STORAGE_RETRY_WAIT_MAX", "2"))

AUDIT_STREAM = os.getenv("AUDIT_STREAM", "audit:events")
AUDIT_STREAM_MAXLEN = int(os.getenv("AUDIT_STREAM_MAXLEN", "100000"))
