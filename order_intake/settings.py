# order_intake/settings.py

from starlette.config import Config
from starlette.datastructures import Secret

try:
    config = Config(".env")
except FileNotFoundError:
    config = Config()

DATABASE_URL = config("DATABASE_URL", cast=Secret, default="sqlite:///./orders.db")
TEST_DATABASE_URL = config("TEST_DATABASE_URL", cast=Secret, default="sqlite:///./test_orders.db")

# Flat directory holding stored payment screenshots, served under /uploads
UPLOAD_DIR = config("UPLOAD_DIR", cast=str, default="uploads")
MAX_UPLOAD_BYTES = config("MAX_UPLOAD_BYTES", cast=int, default=5 * 1024 * 1024)

# Exposes server-side error details in responses
DEBUG = config("DEBUG", cast=bool, default=False)
