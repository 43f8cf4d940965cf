"""JSON-file document store with a minimal repository interface."""

import json
import math
import os
import tempfile
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any


class StoreError(Exception):
    """Exception raised when the document store cannot be read or written."""

    pass


class DocumentNotFound(StoreError):
    """Exception raised when a document id does not exist."""

    pass


@dataclass
class Page:
    """One page of documents from a list query."""

    items: list[dict[str, Any]]
    total: int
    page: int = 1
    limit: int | None = None

    @property
    def total_pages(self) -> int:
        if not self.limit:
            return 1 if self.total else 0
        return math.ceil(self.total / self.limit)

    @property
    def has_more(self) -> bool:
        if not self.limit:
            return False
        return self.total > self.page * self.limit


@dataclass
class DocumentStore:
    """
    A collection of JSON documents kept in a single file.

    Documents are dicts keyed by a string ``id``. The whole collection is
    rewritten atomically on each change.
    """

    path: Path

    def _load(self) -> dict[str, dict[str, Any]]:
        """Load the collection from disk."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to load {self.path.name}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Failed to load {self.path.name}: expected an object")
        return data

    def _save(self, documents: dict[str, dict[str, Any]]) -> None:
        """Save the collection to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(documents, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise StoreError(f"Failed to save {self.path.name}: {e}") from e

    def get(self, doc_id: str) -> dict[str, Any]:
        """
        Get a document by id.

        Raises:
            DocumentNotFound: If no document has this id
        """
        documents = self._load()
        if doc_id not in documents:
            raise DocumentNotFound(f"Document '{doc_id}' not found")
        return documents[doc_id]

    def exists(self, doc_id: str) -> bool:
        return doc_id in self._load()

    def create(self, document: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new document and return it with id and timestamps set.

        A caller-supplied ``id`` is kept; otherwise one is generated.
        """
        documents = self._load()
        now = datetime.now().isoformat()

        doc = dict(document)
        doc_id = doc.get("id") or uuid.uuid4().hex
        if doc_id in documents:
            raise StoreError(f"Document '{doc_id}' already exists")

        doc["id"] = doc_id
        doc.setdefault("created_at", now)
        doc["updated_at"] = now
        documents[doc_id] = doc

        self._save(documents)
        return doc

    def update(self, doc_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Merge changes into an existing document.

        Raises:
            DocumentNotFound: If no document has this id
        """
        documents = self._load()
        if doc_id not in documents:
            raise DocumentNotFound(f"Document '{doc_id}' not found")

        doc = documents[doc_id]
        doc.update({k: v for k, v in changes.items() if k not in ("id", "created_at")})
        doc["updated_at"] = datetime.now().isoformat()

        self._save(documents)
        return doc

    def delete(self, doc_id: str) -> None:
        """
        Delete a document.

        Raises:
            DocumentNotFound: If no document has this id
        """
        documents = self._load()
        if doc_id not in documents:
            raise DocumentNotFound(f"Document '{doc_id}' not found")

        del documents[doc_id]
        self._save(documents)

    def find_one(self, filters: dict[str, Any]) -> dict[str, Any] | None:
        """Return the first document matching all equality filters."""
        for doc in self._load().values():
            if _matches_equality(doc, filters):
                return doc
        return None

    def list(
        self,
        filters: dict[str, Any] | None = None,
        *,
        search: str | None = None,
        search_fields: Iterable[str] = (),
        contains: dict[str, list[Any]] | None = None,
        overlaps: dict[str, list[Any]] | None = None,
        max_values: dict[str, float] | None = None,
        page: int = 1,
        limit: int | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> Page:
        """
        List documents with simple filters and pagination.

        Args:
            filters: Field -> value equality filters
            search: Case-insensitive substring matched against search_fields
            search_fields: Fields that ``search`` looks into (any may match)
            contains: List field -> values that must all be present
            overlaps: List field -> values of which at least one must be present
            max_values: Field -> inclusive upper bound
            page: 1-based page number
            limit: Page size (None returns everything)
            order_by: Field to sort on
            descending: Sort direction

        Returns:
            Page of matching documents
        """
        if page < 1:
            raise StoreError("page must be >= 1")
        if limit is not None and limit < 1:
            raise StoreError("limit must be >= 1")

        needle = search.strip().lower() if search else ""
        fields = list(search_fields)

        matched = []
        for doc in self._load().values():
            if filters and not _matches_equality(doc, filters):
                continue
            if needle and not any(needle in str(doc.get(f) or "").lower() for f in fields):
                continue
            if contains and not _matches_contains(doc, contains):
                continue
            if overlaps and not _matches_overlaps(doc, overlaps):
                continue
            if max_values and not _matches_max(doc, max_values):
                continue
            matched.append(doc)

        matched.sort(key=lambda d: _sort_key(d.get(order_by)), reverse=descending)

        total = len(matched)
        if limit is not None:
            offset = (page - 1) * limit
            matched = matched[offset : offset + limit]

        return Page(items=matched, total=total, page=page, limit=limit)


def _matches_equality(doc: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(doc.get(key) == value for key, value in filters.items())


def _lowered(values: Iterable[Any]) -> set[str]:
    return {str(v).lower() for v in values}


def _matches_contains(doc: dict[str, Any], contains: dict[str, list[Any]]) -> bool:
    for key, wanted in contains.items():
        present = _lowered(doc.get(key) or [])
        if not _lowered(wanted) <= present:
            return False
    return True


def _matches_overlaps(doc: dict[str, Any], overlaps: dict[str, list[Any]]) -> bool:
    for key, wanted in overlaps.items():
        present = _lowered(doc.get(key) or [])
        if not _lowered(wanted) & present:
            return False
    return True


def _matches_max(doc: dict[str, Any], max_values: dict[str, float]) -> bool:
    for key, bound in max_values.items():
        value = doc.get(key)
        if value is None or value > bound:
            return False
    return True


def _sort_key(value: Any) -> tuple[int, Any]:
    # None sorts first, then values of a comparable type
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)):
        return (1, value)
    return (2, str(value))
