"""Stage docs and resources for conversion, classifying markdown files on the way."""

from __future__ import annotations

import logging
import re
import shutil
from datetime import date
from pathlib import Path

from docsbuild.collector.classifier import MARKDOWN_SUFFIX, classify
from docsbuild.collector.models import Document, DocumentRegistry
from docsbuild.config.models import BuildConfig

logger = logging.getLogger(__name__)

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_document_version(day: date) -> str:
    """Format a release date as ``yyyyMMdd - dd MMMM yyyy`` (English month names)."""
    return f"{day:%Y%m%d} - {day:%d} {_MONTHS[day.month - 1]} {day:%Y}"


def replace_tokens(text: str, tokens: dict[str, str]) -> str:
    """Replace ``@name@`` placeholders whose name is a known token.

    Only known names are matched, so an unknown ``@word@`` does not consume
    the ``@`` that opens the next placeholder: ``v@x@projectVersion@`` still
    has its version replaced.
    """
    if not tokens:
        return text
    names = sorted(tokens, key=len, reverse=True)
    pattern = re.compile("@(" + "|".join(map(re.escape, names)) + ")@")
    return pattern.sub(lambda m: tokens[m.group(1)], text)


class FileCollector:
    """Copies the docs tree into the staging dir and builds the document registry.

    Markdown files get their ``@token@`` placeholders resolved and are
    classified in the same pass. Resource folders (images, scripts, styles)
    are copied alongside so pandoc and the generated HTML can find them.
    """

    def __init__(self, config: BuildConfig) -> None:
        self.config = config
        self.docs_dir = Path(config.paths.docs_dir)
        self.staging_dir = Path(config.paths.staging_dir)

    def tokens(self) -> dict[str, str]:
        """Token values applied to markdown files. Raises ValueError if any is empty."""
        tokens = {
            "documentVersion": format_document_version(self.config.document_date),
            "projectVersion": self.config.project_version,
            **self.config.tokens,
        }
        missing = sorted(name for name, value in tokens.items() if not value)
        if missing:
            raise ValueError(f"Undefined value for token(s): {', '.join(missing)}")
        return tokens

    def scan(self) -> DocumentRegistry:
        """Classify the docs tree without copying anything."""
        self._check_docs_dir()
        registry = DocumentRegistry()
        for src in self._markdown_files():
            rel = src.relative_to(self.docs_dir)
            doc_id, doc_type = classify(rel)
            registry.add(Document(id=doc_id, type=doc_type, source_path=src))
        return registry

    def collect(self) -> DocumentRegistry:
        """Stage all docs and resources. Returns the registry of markdown documents."""
        self._check_docs_dir()
        tokens = self.tokens()

        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir)
        self.staging_dir.mkdir(parents=True)

        registry = DocumentRegistry()
        for src in sorted(self.docs_dir.rglob("*")):
            if not src.is_file():
                continue
            rel = src.relative_to(self.docs_dir)
            dest = self.staging_dir / rel
            dest.parent.mkdir(parents=True, exist_ok=True)

            if src.suffix != MARKDOWN_SUFFIX:
                shutil.copy2(src, dest)
                continue

            doc_id, doc_type = classify(rel)
            text = src.read_text(encoding="utf-8")
            dest.write_text(replace_tokens(text, tokens), encoding="utf-8")
            registry.add(Document(id=doc_id, type=doc_type, source_path=dest))
            logger.debug("staged %s (%s)", doc_id, doc_type)

        for name, resource_dir in self.config.paths.resource_dirs.items():
            resource_dir = Path(resource_dir)
            if not resource_dir.is_dir():
                logger.debug("No %s directory at %s, skipping", name, resource_dir)
                continue
            shutil.copytree(resource_dir, self.staging_dir / name, dirs_exist_ok=True)

        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Collected %d document(s) into %s", len(registry), self.staging_dir)
        return registry

    def _check_docs_dir(self) -> None:
        if not self.docs_dir.is_dir():
            raise FileNotFoundError(f"Docs directory not found: {self.docs_dir}")

    def _markdown_files(self) -> list[Path]:
        return sorted(
            p for p in self.docs_dir.rglob(f"*{MARKDOWN_SUFFIX}") if p.is_file()
        )
