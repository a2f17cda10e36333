"""Per-user history of cache invalidation actions, kept in Redis."""

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import redis

HISTORY_KEY = 'cache_action_history:{owner}'


@dataclass
class CacheAction:
    type: str
    status: str
    message: str
    categoryId: Optional[str] = None
    categoryName: Optional[str] = None
    path: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CacheActionHistory:
    """Most recent cache actions of one user, newest first."""

    def __init__(self, redis_client: redis.Redis, owner: str, limit: int = 50):
        self.redis = redis_client
        self.key = HISTORY_KEY.format(owner=owner)
        self.limit = limit

    def record(self, action: CacheAction) -> CacheAction:
        self.redis.lpush(self.key, json.dumps(action.to_dict()))
        self.redis.ltrim(self.key, 0, self.limit - 1)
        return action

    def list(self) -> List[Dict[str, Any]]:
        return [json.loads(entry) for entry in self.redis.lrange(self.key, 0, self.limit - 1)]

    def clear(self) -> None:
        self.redis.delete(self.key)
