"""End-to-end build: collect, then HTML, e-books and PDFs."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from docsbuild.collector import DocumentRegistry, FileCollector
from docsbuild.config.models import BuildConfig, OutputFormat
from docsbuild.converter import BuildReport, ConversionDispatcher, ConversionResult
from docsbuild.converter.tools import ToolRunner, run_tool
from docsbuild.errors import ServerStartError
from docsbuild.server import ServerController

logger = logging.getLogger(__name__)

ALL_FORMATS = (OutputFormat.html, OutputFormat.ebook, OutputFormat.pdf)


def build(
    config: BuildConfig,
    formats: Iterable[OutputFormat] = ALL_FORMATS,
    runner: ToolRunner = run_tool,
    registry: DocumentRegistry | None = None,
) -> BuildReport:
    """Run the requested conversions and return the aggregated report.

    PDFs are rendered from the HTML generated in the same run, so requesting
    ``pdf`` always runs the HTML stage first. Collection errors propagate;
    converter failures are recorded in the report.
    """
    formats = set(formats)
    if registry is None:
        registry = FileCollector(config).collect()

    dispatcher = ConversionDispatcher(config, registry, runner=runner)
    report = BuildReport()

    if formats & {OutputFormat.html, OutputFormat.pdf}:
        report.extend(dispatcher.generate_html())

    if OutputFormat.ebook in formats:
        report.extend(dispatcher.generate_ebooks())

    if OutputFormat.pdf in formats:
        report.extend(_generate_pdfs(config, dispatcher, report))

    logger.info(
        "Build finished: %d succeeded, %d failed, %d skipped",
        len(report.succeeded),
        len(report.failed),
        len(report.skipped),
    )
    return report


def _generate_pdfs(
    config: BuildConfig, dispatcher: ConversionDispatcher, html_report: BuildReport
) -> list[ConversionResult]:
    if not dispatcher.jobs(OutputFormat.pdf):
        logger.info("No documents need PDF output")
        return []

    server = ServerController(
        config.server,
        site_dir=config.paths.site_dir.resolve(),
        log_path=config.paths.build_dir / "server.log",
    )
    try:
        with server:
            return dispatcher.generate_pdfs(server.base_url, html_report)
    except ServerStartError as e:
        logger.error("PDF generation aborted: %s", e)
        return dispatcher.fail_pdfs(f"server unavailable: {e}")
