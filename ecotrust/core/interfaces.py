"""
Contracts the pipeline consumes from its collaborators.

Concrete implementations live under `ecotrust.integrations`; tests plug in
in-memory doubles. Nothing here performs I/O.
"""

from typing import List, Optional, Protocol, Sequence, Tuple

from ecotrust.schemas.evidence import StoredObject

Ring = Sequence[Tuple[float, float]]


class Storage(Protocol):
    async def put(self, data: bytes, suggested_name: str, metadata: dict) -> StoredObject:
        """Persist bytes and return where they landed. Raises on failure."""
        ...


class VisionModel(Protocol):
    async def analyze(self, image_bytes: bytes, context_blob: str) -> str:
        """Return the model's raw text verdict. May be slow, may raise."""
        ...


class Registry(Protocol):
    def prior_hashes(self, project_id: str, window_size: int) -> List[str]:
        ...

    def geofence(self, project_id: str) -> Optional[Ring]:
        ...
