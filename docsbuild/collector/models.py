"""Pydantic models for collected documents."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A markdown document staged for conversion."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    type: str = Field(min_length=1)
    source_path: Path


class DocumentRegistry:
    """Ordered id -> Document mapping produced by a single collection pass."""

    def __init__(self, documents: list[Document] | None = None) -> None:
        self._docs: dict[str, Document] = {}
        for doc in documents or []:
            self.add(doc)

    def add(self, doc: Document) -> None:
        if doc.id in self._docs:
            raise ValueError(f"Duplicate document id: {doc.id}")
        self._docs[doc.id] = doc

    def get(self, doc_id: str) -> Document | None:
        return self._docs.get(doc_id)

    @property
    def types(self) -> set[str]:
        return {doc.type for doc in self._docs.values()}

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._docs

    def __iter__(self) -> Iterator[Document]:
        return iter(self._docs.values())

    def __len__(self) -> int:
        return len(self._docs)
