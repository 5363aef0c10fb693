"""Directory-backed object store for operator runs and tests."""

import asyncio
import logging
from pathlib import Path

from ecotrust.core.errors import UploadError
from ecotrust.integrations.object_keys import generate_unique_key
from ecotrust.schemas.evidence import StoredObject

logger = logging.getLogger(__name__)


class LocalStorage:
    def __init__(self, root):
        self.root = Path(root)

    def _write(self, data: bytes, key: str) -> Path:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    async def put(self, data: bytes, suggested_name: str, metadata: dict) -> StoredObject:
        key = generate_unique_key(suggested_name)
        try:
            path = await asyncio.to_thread(self._write, data, key)
        except OSError as e:
            logger.error(f"[STORAGE] Could not write {key}: {e}")
            raise UploadError(f"Could not write {key}: {e}") from e

        logger.info(f"[STORAGE] Wrote {len(data)} bytes to {path}")
        return StoredObject(url=path.resolve().as_uri(), key=key)
