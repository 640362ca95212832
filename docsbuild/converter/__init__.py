"""Conversion subsystem — shells out to pandoc, ebook-convert and wkhtmltopdf."""

from docsbuild.converter.dispatcher import ConversionDispatcher
from docsbuild.converter.models import (
    BuildReport,
    ConversionResult,
    ConversionStatus,
    ToolResult,
)
from docsbuild.converter.tools import run_tool

__all__ = [
    "BuildReport",
    "ConversionDispatcher",
    "ConversionResult",
    "ConversionStatus",
    "ToolResult",
    "run_tool",
]
