"""Pydantic models for the conversion subsystem."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from docsbuild.config.models import OutputFormat
from docsbuild.errors import ConverterExitError


class ConversionStatus(str, Enum):
    succeeded = "succeeded"
    failed = "failed"
    skipped = "skipped"


class ToolResult(BaseModel):
    """Outcome of a single external tool invocation."""

    command: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> ToolResult:
        """Raise ConverterExitError if the tool exited non-zero."""
        if not self.ok:
            raise ConverterExitError(self.command, self.returncode, self.stderr)
        return self


class ConversionResult(BaseModel):
    """Result of one (document, format) conversion job."""

    doc_id: str
    doc_type: str
    format: OutputFormat
    status: ConversionStatus
    outputs: list[Path] = Field(default_factory=list)
    message: str = ""


class BuildReport(BaseModel):
    """Aggregated conversion results for a build run."""

    results: list[ConversionResult] = Field(default_factory=list)

    def extend(self, results: list[ConversionResult]) -> None:
        self.results.extend(results)

    def by_status(self, status: ConversionStatus) -> list[ConversionResult]:
        return [r for r in self.results if r.status == status]

    @property
    def succeeded(self) -> list[ConversionResult]:
        return self.by_status(ConversionStatus.succeeded)

    @property
    def failed(self) -> list[ConversionResult]:
        return self.by_status(ConversionStatus.failed)

    @property
    def skipped(self) -> list[ConversionResult]:
        return self.by_status(ConversionStatus.skipped)

    @property
    def ok(self) -> bool:
        return not self.failed

    def find(self, doc_id: str, fmt: OutputFormat) -> ConversionResult | None:
        for result in self.results:
            if result.doc_id == doc_id and result.format == fmt:
                return result
        return None
