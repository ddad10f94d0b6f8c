"""Environment-driven settings for the arXiv paper pipeline.

Values are read once at import time, after a local ``.env`` (if any) is loaded.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

ARXIV_API_URL = os.getenv("ARXIV_API_URL", "http://export.arxiv.org/api/query")
ARXIV_ABS_URL = "https://arxiv.org/abs"

# arXiv asks clients to wait 3 seconds between calls.
ARXIV_RATE_LIMIT_MS = int(os.getenv("ARXIV_RATE_LIMIT_MS", "3000"))
ARXIV_PAGE_SIZE = int(os.getenv("ARXIV_PAGE_SIZE", "100"))
ARXIV_MAX_RETRIES = int(os.getenv("ARXIV_MAX_RETRIES", "3"))
REQUEST_TIMEOUT_SECONDS = int(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

DEFAULT_START_DATE = os.getenv("DEFAULT_START_DATE", "2020-01-01")
LOOKBACK_DAYS = int(os.getenv("LOOKBACK_DAYS", "7"))
MIN_KEYWORD_MATCHES = int(os.getenv("MIN_KEYWORD_MATCHES", "1"))

TEST_MODE_QUERY_COUNT = 2
TEST_MODE_MAX_RESULTS = 50

DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
PAPERS_DIR = DATA_DIR / "papers"
INDEX_PATH = DATA_DIR / "index.json"
CATEGORIES_PATH = DATA_DIR / "categories.json"
USER_CATEGORIES_PATH = DATA_DIR / "user_categories.json"
BLOCKLIST_PATH = DATA_DIR / "blocklist.json"
SAVEDLIST_PATH = DATA_DIR / "savedlist.json"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
