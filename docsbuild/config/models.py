from datetime import date
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class OutputFormat(str, Enum):
    """Output formats a document type can be converted into."""

    html = "html"
    ebook = "ebook"
    pdf = "pdf"


class PathsConfig(BaseModel):
    docs_dir: Path = Path("docs")
    images_dir: Path = Path("images")
    scripts_dir: Path = Path("scripts")
    styles_dir: Path = Path("styles")
    templates_dir: Path = Path("templates")
    build_dir: Path = Path("build")

    @property
    def staging_dir(self) -> Path:
        return self.build_dir / "source"

    @property
    def site_dir(self) -> Path:
        return self.build_dir / "site"

    @property
    def resource_dirs(self) -> dict[str, Path]:
        """Resource directories copied next to the staged docs, keyed by target name."""
        return {
            "scripts": self.scripts_dir,
            "images": self.images_dir,
            "styles": self.styles_dir,
        }


class ToolsConfig(BaseModel):
    pandoc: str = "pandoc"
    ebook_convert: str = "ebook-convert"
    wkhtmltopdf: str = "wkhtmltopdf"
    timeout: int | None = Field(default=None, gt=0)


class PdfConfig(BaseModel):
    footer_font_name: str = "Ubuntu"


class ServerConfig(BaseModel):
    port: int = Field(default=8080, gt=0, lt=65536)
    host: str = "localhost"
    context_path: str = "thymeleaf-docs"
    command: list[str] | None = None
    stop_command: list[str] | None = None
    ready_line: str | None = None
    startup_timeout: float = Field(default=30.0, gt=0)
    poll_interval: float = Field(default=0.25, gt=0)
    shutdown_timeout: float = Field(default=10.0, gt=0)

    @field_validator("context_path")
    @classmethod
    def validate_context_path(cls, v: str) -> str:
        v = v.strip("/")
        if not v or "/" in v or v in (".", ".."):
            raise ValueError("context_path must be a single non-empty path segment")
        return v

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/{self.context_path}"


def _default_conversions() -> dict[str, set[OutputFormat]]:
    return {
        "articles": {OutputFormat.html},
        "tutorials": {OutputFormat.html, OutputFormat.ebook, OutputFormat.pdf},
    }


class BuildConfig(BaseModel):
    project_version: str = "3.0.11.RELEASE"
    document_date: date = date(2018, 10, 29)
    conversions: dict[str, set[OutputFormat]] = Field(default_factory=_default_conversions)
    tokens: dict[str, str] = Field(default_factory=dict)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    pdf: PdfConfig = Field(default_factory=PdfConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    max_workers: int = Field(default=1, gt=0)
    strict_types: bool = False
    log_level: Literal["debug", "info", "warn", "error"] = "info"

    @property
    def output_dir(self) -> Path:
        """Generated site directory, served under the server's context path."""
        return self.paths.site_dir / self.server.context_path

    def formats_for(self, doc_type: str) -> set[OutputFormat] | None:
        """Formats supported by a document type, or None if the type is unknown."""
        return self.conversions.get(doc_type)
