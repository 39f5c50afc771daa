import os

from dotenv import load_dotenv

load_dotenv()

# DemoMed clinical-data API
DEMOMED_API_KEY = os.getenv("DEMOMED_API_KEY") or os.getenv("NEXT_PUBLIC_DEMOMED_API_KEY", "")
DEMOMED_BASE_URL = os.getenv("DEMOMED_BASE_URL", "https://assessment.ksensetech.com/api")
DEMOMED_TIMEOUT = float(os.getenv("DEMOMED_TIMEOUT", "30"))

# Retry/backoff
DEMOMED_MAX_ATTEMPTS = int(os.getenv("DEMOMED_MAX_ATTEMPTS", "5"))
DEMOMED_BASE_DELAY_MS = int(os.getenv("DEMOMED_BASE_DELAY_MS", "300"))
DEMOMED_MAX_DELAY_MS = int(os.getenv("DEMOMED_MAX_DELAY_MS", "4000"))
RETRIABLE_STATUSES = frozenset({429, 500, 503})

# Paging
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "5"))
MAX_PAGE_LIMIT = 20
DEFAULT_MAX_PAGES = int(os.getenv("DEFAULT_MAX_PAGES", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
