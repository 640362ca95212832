"""Shared test fixtures for docsbuild."""

from pathlib import Path

import pytest

from docsbuild.config.models import BuildConfig, PathsConfig, ServerConfig
from docsbuild.converter.models import ToolResult


@pytest.fixture
def docs_project(tmp_path):
    """A project tree with docs, resources and templates."""
    docs = tmp_path / "docs"
    (docs / "articles").mkdir(parents=True)
    (docs / "tutorials" / "3.0" / "images").mkdir(parents=True)
    (docs / "tutorials" / "2.1.x").mkdir(parents=True)

    (docs / "articles" / "intro.md").write_text(
        "% Introduction\n% @documentVersion@\n\nHello.\n"
    )
    (docs / "tutorials" / "3.0" / "using.md").write_text(
        "---\ntitle: Using\nversion: @projectVersion@\n---\n\nContact me@example.com\n"
    )
    (docs / "tutorials" / "3.0" / "images" / "diagram.png").write_bytes(b"\x89PNG")
    (docs / "tutorials" / "2.1.x" / "legacy.md").write_text("# Legacy @unknownToken@\n")

    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "logo.png").write_bytes(b"\x89PNG")
    (tmp_path / "styles").mkdir()
    (tmp_path / "styles" / "site.css").write_text("body {}")
    (tmp_path / "scripts").mkdir()
    (tmp_path / "scripts" / "toc.js").write_text("// toc")

    templates = tmp_path / "templates"
    templates.mkdir()
    for name in ("articles.html", "tutorials.html", "tutorials.epub"):
        (templates / name).write_text("$body$")
    return tmp_path


@pytest.fixture
def build_config(docs_project):
    root = docs_project
    return BuildConfig(
        paths=PathsConfig(
            docs_dir=root / "docs",
            images_dir=root / "images",
            scripts_dir=root / "scripts",
            styles_dir=root / "styles",
            templates_dir=root / "templates",
            build_dir=root / "build",
        ),
        server=ServerConfig(port=18080, startup_timeout=1.0, poll_interval=0.01),
    )


class FakeRunner:
    """Records tool invocations and creates their output files.

    Commands whose joined text contains any string in ``fail_on`` exit 1.
    """

    def __init__(self, fail_on: tuple[str, ...] = ()) -> None:
        self.fail_on = fail_on
        self.calls: list[tuple[list[str], Path | None]] = []

    def __call__(self, command, cwd=None, timeout=None):
        self.calls.append((command, cwd))
        joined = " ".join(command)
        if any(pattern in joined for pattern in self.fail_on):
            return ToolResult(command=command, returncode=1, stderr=f"boom: {joined}")
        output = self._output_of(command)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("generated")
        return ToolResult(command=command, returncode=0)

    @staticmethod
    def _output_of(command: list[str]) -> Path:
        for arg in command:
            if arg.startswith("--output="):
                return Path(arg.split("=", 1)[1])
        return Path(command[-1])

    def tools_called(self) -> list[str]:
        return [command[0] for command, _ in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def failing_runner():
    """Factory for runners that fail commands mentioning any of the given strings."""

    def _make(*patterns: str) -> FakeRunner:
        return FakeRunner(fail_on=patterns)

    return _make
