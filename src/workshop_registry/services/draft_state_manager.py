import json
import logging
from typing import Any, Dict

import redis

logger = logging.getLogger(__name__)


class DraftStateManager:
    """
    Manages workshop drafts in Redis with automatic TTL.

    Holds a workshop being authored before it is saved, enabling:
    - Incremental editing across several requests
    - Automatic draft expiration (sliding window)
    - Draft completeness validation
    - Wholesale replacement of the custom field list
    """

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 1800):
        """
        Initialize DraftStateManager with Redis backend.

        Args:
            redis_client: Redis client instance (from dependency injection)
            ttl_seconds: Time-to-live in seconds (default: 1800 = 30 minutes)
        """
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    def _draft_key(self, draft_id: str) -> str:
        return f"workshop_draft:{draft_id}"

    def _empty_draft_template(self) -> Dict[str, Any]:
        return {
            "title": None,
            "description": None,
            "starts_at": None,
            "ends_at": None,
            "capacity": None,
            "enable_waitlist": False,
            "require_approval": False,
            "registration_closes": None,
            "form": {"use_default_fields": True, "custom_fields": []},
            "is_complete": False,
            "workshop_id": None,
        }

    def get_draft(self, draft_id: str) -> Dict[str, Any]:
        """
        Retrieve a draft.

        Returns:
            Draft dictionary (empty template if not found or corrupted)

        Raises:
            redis.RedisError: If Redis operation fails
        """
        key = self._draft_key(draft_id)
        try:
            draft_json = self.redis_client.get(key)
            if not draft_json:
                return self._empty_draft_template()

            try:
                return json.loads(draft_json)
            except json.JSONDecodeError:
                logger.error(f"Corrupted draft {draft_id}, returning empty")
                return self._empty_draft_template()

        except redis.RedisError as e:
            logger.error(f"Redis error getting draft {draft_id}: {e}")
            raise

    def _merge_draft(
        self, current: Dict[str, Any], updates: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Merge draft updates into the current draft.

        - form.custom_fields: replaced with the new list (the editor always
          sends the complete desired list)
        - form.use_default_fields: overwritten when present
        - Other keys: simple overwrite
        """
        merged = current.copy()

        for key, value in updates.items():
            if key == "form" and isinstance(value, dict):
                form = dict(merged.get("form") or {})
                if isinstance(value.get("custom_fields"), list):
                    form["custom_fields"] = value["custom_fields"]
                if "use_default_fields" in value:
                    form["use_default_fields"] = bool(value["use_default_fields"])
                merged["form"] = form
            else:
                merged[key] = value

        return merged

    def update_draft(self, draft_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update a draft and refresh its TTL.

        Returns:
            Complete updated draft

        Raises:
            redis.RedisError: If Redis operation fails
        """
        try:
            current = self.get_draft(draft_id)
            merged = self._merge_draft(current, updates)
            merged["is_complete"] = self.is_complete(merged)

            key = self._draft_key(draft_id)
            self.redis_client.setex(
                key, self.ttl_seconds, json.dumps(merged, default=str)
            )
            return merged

        except redis.RedisError as e:
            logger.error(f"Redis error updating draft {draft_id}: {e}")
            raise

    def is_complete(self, draft: Dict[str, Any]) -> bool:
        """
        Check if a draft has what a workshop needs to be created.

        Required: non-blank title and start time; capacity, when given, is
        a non-negative integer; every custom field has a label.
        """
        for key in ("title", "starts_at"):
            value = draft.get(key)
            if not value or (isinstance(value, str) and not value.strip()):
                return False

        capacity = draft.get("capacity")
        if capacity is not None and (
            isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 0
        ):
            return False

        form = draft.get("form") or {}
        for field in form.get("custom_fields") or []:
            if not isinstance(field, dict) or not str(field.get("label") or "").strip():
                return False

        return True

    def clear_draft(self, draft_id: str) -> None:
        """
        Clear a draft.

        Raises:
            redis.RedisError: If Redis operation fails
        """
        key = self._draft_key(draft_id)
        try:
            self.redis_client.delete(key)
            logger.info(f"Cleared workshop draft {draft_id}")
        except redis.RedisError as e:
            logger.error(f"Redis error clearing draft {draft_id}: {e}")
            raise
