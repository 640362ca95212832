"""Collection subsystem — stages docs and classifies them by folder."""

from docsbuild.collector.classifier import classify, document_id, is_version_dir
from docsbuild.collector.collector import (
    FileCollector,
    format_document_version,
    replace_tokens,
)
from docsbuild.collector.models import Document, DocumentRegistry

__all__ = [
    "Document",
    "DocumentRegistry",
    "FileCollector",
    "classify",
    "document_id",
    "format_document_version",
    "is_version_dir",
    "replace_tokens",
]
