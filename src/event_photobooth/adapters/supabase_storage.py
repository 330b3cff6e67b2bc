"""Supabase Storage access for photos and album archives."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from supabase import Client

_PAGE_SIZE = 1000
_REMOVE_BATCH = 100


@dataclass(frozen=True)
class StoredObject:
    """An object stored in a bucket."""

    path: str
    updated_at: datetime | None


class ObjectStorage(Protocol):
    """Interface for bucket object storage."""

    def list_objects(self, bucket: str, prefix: str) -> list[StoredObject]:
        """Return every object directly under a folder prefix."""

    def get_object(self, bucket: str, path: str) -> StoredObject | None:
        """Return object info for a path, if it exists."""

    def download(self, bucket: str, path: str) -> bytes:
        """Return the bytes of a stored object."""

    def upload(
        self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool
    ) -> None:
        """Store bytes at a path."""

    def remove(self, bucket: str, paths: list[str]) -> int:
        """Delete objects and return how many were removed."""

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Return a time-limited download URL."""

    def get_public_url(self, bucket: str, path: str) -> str:
        """Return the public URL of an object."""


@dataclass
class SupabaseObjectStorage(ObjectStorage):
    """Object storage backed by Supabase Storage buckets."""

    client: Client

    def list_objects(self, bucket: str, prefix: str) -> list[StoredObject]:
        """Return every file under a folder, following pagination."""
        folder = prefix.strip("/")
        objects: list[StoredObject] = []
        offset = 0
        while True:
            page = self.client.storage.from_(bucket).list(
                folder, {"limit": _PAGE_SIZE, "offset": offset}
            )
            for item in page or []:
                # Sub-folders come back without an id.
                if item.get("id") is None:
                    continue
                objects.append(_to_stored_object(f"{folder}/{item['name']}", item))
            if not page or len(page) < _PAGE_SIZE:
                return objects
            offset += _PAGE_SIZE

    def get_object(self, bucket: str, path: str) -> StoredObject | None:
        """Return object info by searching its folder for the file name."""
        folder, _, name = path.rpartition("/")
        page = self.client.storage.from_(bucket).list(
            folder, {"limit": _PAGE_SIZE, "offset": 0, "search": name}
        )
        for item in page or []:
            if item.get("name") == name and item.get("id") is not None:
                return _to_stored_object(path, item)
        return None

    def download(self, bucket: str, path: str) -> bytes:
        """Download an object's bytes."""
        return self.client.storage.from_(bucket).download(path)

    def upload(
        self, bucket: str, path: str, data: bytes, content_type: str, upsert: bool
    ) -> None:
        """Upload bytes to a bucket path."""
        self.client.storage.from_(bucket).upload(
            path,
            data,
            {"content-type": content_type, "upsert": "true" if upsert else "false"},
        )

    def remove(self, bucket: str, paths: list[str]) -> int:
        """Remove objects in batches and return the number removed."""
        removed = 0
        for start in range(0, len(paths), _REMOVE_BATCH):
            batch = paths[start : start + _REMOVE_BATCH]
            response = self.client.storage.from_(bucket).remove(batch)
            removed += len(response or [])
        return removed

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Create a signed URL for an object."""
        response = self.client.storage.from_(bucket).create_signed_url(
            path, expires_in
        )
        signed_url = response.get("signedUrl") or response.get("signedURL")
        if not signed_url:
            raise RuntimeError(f"Failed to sign URL for {bucket}/{path}")
        return signed_url

    def get_public_url(self, bucket: str, path: str) -> str:
        """Return the public URL for an object."""
        return self.client.storage.from_(bucket).get_public_url(path)


def _to_stored_object(path: str, item: dict[str, object]) -> StoredObject:
    raw = item.get("updated_at") or item.get("created_at")
    updated_at = (
        datetime.fromisoformat(raw.replace("Z", "+00:00"))
        if isinstance(raw, str) and raw
        else None
    )
    return StoredObject(path=path, updated_at=updated_at)
