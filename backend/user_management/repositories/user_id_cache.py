from __future__ import annotations

import json
from typing import Any

from ..observability.logging import get_logger

log = get_logger("user_id_cache")

USER_ID_CACHE = "UserId"


class UserIdCache:
    """
    Trainee id -> Cognito account ids (subs), stored in Redis.

    Keys are "{prefix}::UserId::{trainee_id}", values a JSON list of subs with a TTL.
    """

    def __init__(self, client: Any, *, prefix: str, ttl_seconds: int, name: str = USER_ID_CACHE):
        self._client = client
        self._prefix = str(prefix or "").strip()
        self._ttl = int(ttl_seconds)
        self.name = name

    def key(self, trainee_id: str) -> str:
        base = f"{self.name}::{trainee_id}"
        return f"{self._prefix}::{base}" if self._prefix else base

    def get(self, trainee_id: str) -> set[str] | None:
        raw = self._client.get(self.key(trainee_id))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            ids = json.loads(raw)
        except ValueError:
            log.warning("user_id_cache_corrupt_entry", trainee_id=trainee_id)
            return None
        return {str(i) for i in ids} if isinstance(ids, list) else None

    def put(self, trainee_id: str, account_ids: set[str]) -> None:
        value = json.dumps(sorted(account_ids))
        if self._ttl > 0:
            self._client.set(self.key(trainee_id), value, ex=self._ttl)
        else:
            self._client.set(self.key(trainee_id), value)

    def clear(self) -> int:
        pattern = self.key("*")
        removed = 0
        for k in self._client.scan_iter(match=pattern):
            removed += int(self._client.delete(k) or 0)
        return removed
