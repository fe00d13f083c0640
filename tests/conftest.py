# tests/conftest.py
"""
Global test bootstrap
- Makes SlowAPI rate-limiting test-friendly (bypass by default)
- Keeps storage offline: no bucket, fake AWS credentials
- Pulls in the shared fakes/fixtures
"""

from __future__ import annotations

import os
import random

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set BEFORE importing the app so settings pick it up)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ["MEDIA_BUCKET"] = ""
os.environ["LOG_TO_FILE"] = "0"

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Shared fixtures
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.fakes import *  # noqa: F401,F403,E402
from tests.fixtures.app import *    # noqa: F401,F403,E402
