from .loader import load_config, load_config_source
from .models import (
    BuildConfig,
    OutputFormat,
    PathsConfig,
    PdfConfig,
    ServerConfig,
    ToolsConfig,
)

__all__ = [
    "BuildConfig",
    "OutputFormat",
    "PathsConfig",
    "PdfConfig",
    "ServerConfig",
    "ToolsConfig",
    "load_config",
    "load_config_source",
]
