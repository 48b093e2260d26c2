"""Supabase-backed key/value store."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from health_tracker.services.persistence import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Stores each blob as one row of the kv_blobs table."""

    client: Client
    owner: str = "default"
    table: str = "kv_blobs"

    def read(self, key: str) -> bytes | None:
        """Return the stored payload for key."""
        response = (
            self.client.table(self.table)
            .select("payload")
            .eq("owner", self.owner)
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        payload = response.data[0].get("payload")
        if payload is None:
            return None
        return str(payload).encode("utf-8")

    def write(self, key: str, data: bytes) -> None:
        """Upsert the payload for key."""
        response = (
            self.client.table(self.table)
            .upsert(
                {
                    "owner": self.owner,
                    "key": key,
                    "payload": data.decode("utf-8"),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="owner,key",
            )
            .execute()
        )
        if response.data is None:
            raise RuntimeError(f"Failed to store {key}")
