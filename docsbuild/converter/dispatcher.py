"""Dispatch staged documents to the external converters by document type."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from urllib.parse import quote

from docsbuild.collector.classifier import MARKDOWN_SUFFIX
from docsbuild.collector.models import Document, DocumentRegistry
from docsbuild.config.models import BuildConfig, OutputFormat
from docsbuild.converter.models import BuildReport, ConversionResult, ConversionStatus
from docsbuild.converter.tools import (
    ToolRunner,
    ebook_convert_command,
    pandoc_epub_command,
    pandoc_html_command,
    run_tool,
    wkhtmltopdf_command,
)
from docsbuild.errors import ClassificationError, ConverterExitError

logger = logging.getLogger(__name__)


class ConversionDispatcher:
    """Runs HTML, e-book and PDF conversions for the documents in a registry.

    Each document is converted into the formats its type supports according
    to ``config.conversions``. Failed tool runs are logged and recorded in the
    returned results; the batch always carries on with the next job.
    """

    def __init__(
        self,
        config: BuildConfig,
        registry: DocumentRegistry,
        runner: ToolRunner = run_tool,
    ) -> None:
        self.config = config
        self.registry = registry
        self.runner = runner
        self.staging_dir = Path(config.paths.staging_dir).resolve()
        self.output_dir = Path(config.output_dir).resolve()
        self.templates_dir = Path(config.paths.templates_dir).resolve()
        self._unknown_types: set[str] = set()

    # ------------------------------------------------------------------
    # Job selection
    # ------------------------------------------------------------------

    def supports(self, doc: Document, fmt: OutputFormat) -> bool:
        formats = self.config.formats_for(doc.type)
        if formats is None:
            self._unknown_type(doc)
            return False
        return fmt in formats

    def jobs(self, fmt: OutputFormat) -> list[Document]:
        """Documents whose type supports the given format, in registry order."""
        return [doc for doc in self.registry if self.supports(doc, fmt)]

    def _unknown_type(self, doc: Document) -> None:
        if self.config.strict_types:
            raise ClassificationError(
                doc.id, f"document type '{doc.type}' has no configured conversions"
            )
        if doc.type not in self._unknown_types:
            self._unknown_types.add(doc.type)
            logger.warning(
                "No conversions configured for document type '%s' (e.g. %s); skipping",
                doc.type,
                doc.id,
            )

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def generate_html(self) -> list[ConversionResult]:
        """Convert every HTML-enabled doc, then copy resources next to the output."""
        results = self._map(self._html_job, self.jobs(OutputFormat.html))
        self.copy_resources()
        return results

    def _html_job(self, doc: Document) -> ConversionResult:
        logger.info("Generating HTML doc for %s (%s)...", doc.id, doc.type)
        output = self._output_path(doc, ".html")
        output.parent.mkdir(parents=True, exist_ok=True)
        command = pandoc_html_command(
            self.config.tools,
            self.templates_dir / f"{doc.type}.html",
            self._source_path(doc),
            output,
        )
        return self._execute(doc, OutputFormat.html, [command], [output])

    def copy_resources(self) -> int:
        """Copy non-markdown staged files (images, scripts, styles) into the output dir."""
        copied = 0
        for src in sorted(self.staging_dir.rglob("*")):
            if not src.is_file() or src.suffix == MARKDOWN_SUFFIX:
                continue
            dest = self.output_dir / src.relative_to(self.staging_dir)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
            copied += 1
        logger.debug("Copied %d resource file(s) to %s", copied, self.output_dir)
        return copied

    # ------------------------------------------------------------------
    # E-book
    # ------------------------------------------------------------------

    def generate_ebooks(self) -> list[ConversionResult]:
        """Render EPUB for every e-book-enabled doc and convert it to MOBI."""
        return self._map(self._ebook_job, self.jobs(OutputFormat.ebook))

    def _ebook_job(self, doc: Document) -> ConversionResult:
        logger.info("Generating E-Book docs for %s (%s)...", doc.id, doc.type)
        epub = self._output_path(doc, ".epub")
        mobi = self._output_path(doc, ".mobi")
        epub.parent.mkdir(parents=True, exist_ok=True)
        source = self._source_path(doc)
        commands = [
            pandoc_epub_command(
                self.config.tools,
                self.templates_dir / f"{doc.type}.epub",
                source,
                epub,
            ),
            ebook_convert_command(self.config.tools, epub, mobi),
        ]
        # pandoc resolves image references against its working directory
        return self._execute(
            doc, OutputFormat.ebook, commands, [epub, mobi], cwd=source.parent
        )

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def generated_html(self) -> dict[str, Path]:
        """Map document ids to the HTML files found below the output dir."""
        found: dict[str, Path] = {}
        for html in sorted(self.output_dir.glob("*/**/*.html")):
            doc_id = html.relative_to(self.output_dir).with_suffix("").as_posix()
            found[doc_id] = html
        return found

    def generate_pdfs(
        self, base_url: str, html_report: BuildReport
    ) -> list[ConversionResult]:
        """Render PDFs from the HTML served at ``base_url``.

        Only documents whose HTML conversion succeeded in ``html_report`` are
        rendered, so a PDF is never produced from HTML left over by an
        earlier run.
        """
        generated = self.generated_html()
        for doc_id in generated:
            if doc_id not in self.registry:
                logger.debug("Ignoring HTML file with no source document: %s", doc_id)

        results: list[ConversionResult] = []
        for doc in self.jobs(OutputFormat.pdf):
            html_result = html_report.find(doc.id, OutputFormat.html)
            if doc.id not in generated or (
                html_result is None or html_result.status != ConversionStatus.succeeded
            ):
                logger.warning("Skipping PDF for %s: HTML was not generated", doc.id)
                results.append(
                    self._result(
                        doc,
                        OutputFormat.pdf,
                        ConversionStatus.skipped,
                        message="HTML was not generated in this run",
                    )
                )
                continue
            results.append(self._pdf_job(doc, base_url))
        return results

    def _pdf_job(self, doc: Document, base_url: str) -> ConversionResult:
        logger.info("Generating PDF doc for %s (%s)...", doc.id, doc.type)
        output = self._output_path(doc, ".pdf")
        url = f"{base_url.rstrip('/')}/{quote(doc.id)}.html"
        command = wkhtmltopdf_command(self.config.tools, self.config.pdf, url, output)
        return self._execute(doc, OutputFormat.pdf, [command], [output])

    def fail_pdfs(self, reason: str) -> list[ConversionResult]:
        """Record a failed PDF result for every PDF-enabled doc."""
        return [
            self._result(doc, OutputFormat.pdf, ConversionStatus.failed, message=reason)
            for doc in self.jobs(OutputFormat.pdf)
        ]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _execute(
        self,
        doc: Document,
        fmt: OutputFormat,
        commands: list[list[str]],
        outputs: list[Path],
        cwd: Path | None = None,
    ) -> ConversionResult:
        """Run commands in order, stopping at the first failure.

        Commands after a failed one are not run; the failed result names them
        as skipped.
        """
        for i, command in enumerate(commands):
            try:
                self.runner(command, cwd=cwd, timeout=self.config.tools.timeout).check()
            except ConverterExitError as e:
                stderr = e.stderr.strip()
                logger.error("%s for %s\n%s", e, doc.id, stderr)
                message = stderr or str(e)
                skipped = [Path(c[0]).name for c in commands[i + 1 :]]
                if skipped:
                    logger.warning("Skipping %s for %s", ", ".join(skipped), doc.id)
                    message += f" ({', '.join(skipped)} skipped)"
                return self._result(doc, fmt, ConversionStatus.failed, message=message)
        return self._result(doc, fmt, ConversionStatus.succeeded, outputs=outputs)

    def _map(
        self,
        job: Callable[[Document], ConversionResult],
        docs: Iterable[Document],
    ) -> list[ConversionResult]:
        docs = list(docs)
        if self.config.max_workers == 1 or len(docs) < 2:
            return [job(doc) for doc in docs]
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            return list(pool.map(job, docs))

    def _source_path(self, doc: Document) -> Path:
        return self.staging_dir / f"{doc.id}{MARKDOWN_SUFFIX}"

    def _output_path(self, doc: Document, suffix: str) -> Path:
        return self.output_dir / f"{doc.id}{suffix}"

    @staticmethod
    def _result(
        doc: Document,
        fmt: OutputFormat,
        status: ConversionStatus,
        outputs: list[Path] | None = None,
        message: str = "",
    ) -> ConversionResult:
        return ConversionResult(
            doc_id=doc.id,
            doc_type=doc.type,
            format=fmt,
            status=status,
            outputs=outputs or [],
            message=message,
        )
