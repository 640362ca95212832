"""Command lines for the external converters and a runner to invoke them."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from docsbuild.config.models import PdfConfig, ToolsConfig
from docsbuild.converter.models import ToolResult

logger = logging.getLogger(__name__)

TOC_DEPTH = 4

# Exit statuses reported when the tool never ran to completion
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124

ToolRunner = Callable[..., ToolResult]


def run_tool(
    command: list[str], cwd: Path | None = None, timeout: int | None = None
) -> ToolResult:
    """Run a command to completion, capturing its output."""
    logger.debug("exec %s (cwd=%s)", " ".join(command), cwd or ".")
    try:
        proc = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        return ToolResult(
            command=command,
            returncode=EXIT_NOT_FOUND,
            stderr=f"command not found: {command[0]}",
        )
    except OSError as e:
        return ToolResult(
            command=command,
            returncode=EXIT_NOT_EXECUTABLE,
            stderr=f"cannot execute {command[0]}: {e}",
        )
    except subprocess.TimeoutExpired:
        return ToolResult(
            command=command,
            returncode=EXIT_TIMEOUT,
            stderr=f"{command[0]} timed out after {timeout}s",
        )
    return ToolResult(
        command=command,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def pandoc_html_command(
    tools: ToolsConfig, template: Path, source: Path, output: Path
) -> list[str]:
    return [
        tools.pandoc,
        "--write=html5",
        f"--template={template}",
        "--toc",
        f"--toc-depth={TOC_DEPTH}",
        "--section-divs",
        "--no-highlight",
        f"--output={output}",
        str(source),
    ]


def pandoc_epub_command(
    tools: ToolsConfig, template: Path, source: Path, output: Path
) -> list[str]:
    return [
        tools.pandoc,
        "--write=epub",
        f"--template={template}",
        "--toc",
        f"--toc-depth={TOC_DEPTH}",
        "--section-divs",
        f"--output={output}",
        str(source),
    ]


def ebook_convert_command(tools: ToolsConfig, epub: Path, mobi: Path) -> list[str]:
    return [tools.ebook_convert, str(epub), str(mobi)]


def wkhtmltopdf_command(
    tools: ToolsConfig, pdf: PdfConfig, url: str, output: Path
) -> list[str]:
    return [
        tools.wkhtmltopdf,
        "--print-media-type",
        "--dpi", "300",
        "--javascript-delay", "1000",
        "--margin-bottom", "15",
        "--footer-spacing", "5",
        "--footer-font-size", "8",
        "--footer-font-name", f"'{pdf.footer_font_name}'",
        "--footer-right", "Page [page] of [topage]",
        "--quiet",
        url,
        str(output),
    ]
