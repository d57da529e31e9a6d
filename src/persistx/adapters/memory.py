"""In-memory storage adapter."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from persistx import logger
from persistx.exceptions import DocumentExistsError, DocumentNotFoundError
from persistx.processing.normalization import to_iso_string
from persistx.typing.enums import WriteMode
from persistx.typing.models import AdapterSaveRequest, FixedIdStrategy, SaveResult


class MemoryAdapter:
    """Adapter keeping documents in a `collection -> id -> document` dict.

    Every write merges into the existing document. The most recent request is
    kept in `last_request` so callers can inspect exactly what the pipeline
    sent to storage.
    """

    def __init__(self, db: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self.db: dict[str, dict[str, dict[str, Any]]] = db if db is not None else {}
        self.last_request: AdapterSaveRequest | None = None
        self._lock = asyncio.Lock()

    async def save(self, request: AdapterSaveRequest) -> SaveResult:
        """Write mapped data honoring the mode preconditions.

        Args:
            request (AdapterSaveRequest): Resolved write request.

        Raises:
            DocumentExistsError: If `create` targets an existing document.
            DocumentNotFoundError: If `update` targets a missing document.

        Returns:
            SaveResult: Location and timestamp of the write.
        """
        async with self._lock:
            self.last_request = request
            collection = self.db.setdefault(request.collection, {})
            if isinstance(request.id_strategy, FixedIdStrategy):
                doc_id = request.id_strategy.id
            else:
                doc_id = str(uuid4())

            if request.mode == WriteMode.CREATE and doc_id in collection:
                raise DocumentExistsError(
                    message=f"Document exists: {request.collection}/{doc_id}",
                    collection=request.collection,
                    document_id=doc_id,
                )
            if request.mode == WriteMode.UPDATE and doc_id not in collection:
                raise DocumentNotFoundError(
                    message=f"Document not found: {request.collection}/{doc_id}",
                    collection=request.collection,
                    document_id=doc_id,
                )

            collection[doc_id] = {**collection.get(doc_id, {}), **request.data}

        logger.debug(
            "Document stored",
            extra={"collection": request.collection, "id": doc_id, "mode": request.mode.value},
        )
        return SaveResult(
            collection=request.collection,
            id=doc_id,
            mode=request.mode,
            schema_version=request.schema_version,
            saved_at=to_iso_string(datetime.now(UTC)),
        )

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a stored document, if present."""
        return self.db.get(collection, {}).get(doc_id)
