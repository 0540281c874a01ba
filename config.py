import os

# --- DATABASE ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ledger.db")

# --- LEDGER ---
LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "3"))
PAYMENT_EPSILON_MINOR = int(os.getenv("PAYMENT_EPSILON_MINOR", "1"))
INVOICE_PREFIX = os.getenv("INVOICE_PREFIX", "INV")

# --- HTTP ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
