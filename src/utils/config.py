# runtime configuration, read once from the environment
import os

API_BASE_URL = os.getenv("KEEBSHOP_API_URL", "http://localhost:8080/api")
BACKEND_URL = os.getenv("KEEBSHOP_BACKEND_URL", "http://localhost:8080")
STATE_DB_PATH = os.getenv("KEEBSHOP_STATE_DB", "data/keebshop.sqlite")
LOG_FILE = os.getenv("KEEBSHOP_LOG_FILE")

DEFAULT_PAGE_SIZE = 12
ORDERS_PAGE_SIZE = 10
PRICE_SLIDER_MAX = 500
LOW_STOCK_THRESHOLD = 5

CURRENCY_SYMBOL = "$"
