"""docsbuild - converts markdown docs into HTML, e-book and PDF documents."""

from docsbuild.collector import Document, DocumentRegistry, FileCollector, classify
from docsbuild.config import BuildConfig, OutputFormat, load_config
from docsbuild.converter import BuildReport, ConversionDispatcher
from docsbuild.pipeline import build
from docsbuild.server import ServerController

__version__ = "0.1.0"

__all__ = [
    "BuildConfig",
    "BuildReport",
    "ConversionDispatcher",
    "Document",
    "DocumentRegistry",
    "FileCollector",
    "OutputFormat",
    "ServerController",
    "build",
    "classify",
    "load_config",
]
