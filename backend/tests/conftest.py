from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Ensure `backend/` is on sys.path so `import user_management.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

# Settings are read once at import time.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("COGNITO_USER_POOL_ID", "eu-west-2_testpool")
os.environ.setdefault("REQUEST_QUEUE_URL", "https://sqs.eu-west-2.amazonaws.com/000000000000/request.fifo")
os.environ.setdefault(
    "USER_ACCOUNT_UPDATE_TOPIC_ARN", "arn:aws:sns:eu-west-2:000000000000:account-update.fifo"
)
os.environ.setdefault("PROFILE_MOVE_TOPIC_ARN", "arn:aws:sns:eu-west-2:000000000000:profile-move")
os.environ.setdefault("PROFILE_SERVICE_URL", "http://profile.test")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")


@pytest.fixture(autouse=True)
def _clear_profile_cache():
    from user_management.auth.profile_client import clear_profile_cache

    clear_profile_cache()
    yield
    clear_profile_cache()
