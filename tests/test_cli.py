"""Tests for the docsbuild CLI commands."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from docsbuild.cli import app
from docsbuild.config.models import OutputFormat
from docsbuild.converter.models import BuildReport, ConversionResult, ConversionStatus

runner = CliRunner()


@pytest.fixture
def project(docs_project, monkeypatch):
    """Run CLI commands from inside the sample project with a local docsbuild.yaml."""
    monkeypatch.chdir(docs_project)
    (docs_project / "docsbuild.yaml").write_text(
        "project_version: 3.1.0\nserver:\n  port: 18082\n"
    )
    return docs_project


def _report(*statuses: ConversionStatus) -> BuildReport:
    return BuildReport(
        results=[
            ConversionResult(
                doc_id=f"tutorials/doc{i}",
                doc_type="tutorials",
                format=OutputFormat.html,
                status=status,
                message="pandoc exited with status 1" if status == ConversionStatus.failed else "",
            )
            for i, status in enumerate(statuses)
        ]
    )


# ---------------------------------------------------------------------------
# build / html / ebook / pdf
# ---------------------------------------------------------------------------


class TestBuildCommands:
    def test_build_all_formats(self, project):
        with patch("docsbuild.cli.run_build", return_value=_report(ConversionStatus.succeeded)) as b:
            result = runner.invoke(app, ["build"])

        assert result.exit_code == 0, result.output
        cfg, formats = b.call_args[0]
        assert cfg.project_version == "3.1.0"
        assert set(formats) == {OutputFormat.html, OutputFormat.ebook, OutputFormat.pdf}
        assert "Build Complete" in result.output

    def test_build_selected_formats(self, project):
        with patch("docsbuild.cli.run_build", return_value=_report()) as b:
            result = runner.invoke(app, ["build", "-f", "html", "-f", "pdf"])

        assert result.exit_code == 0, result.output
        assert b.call_args[0][1] == [OutputFormat.html, OutputFormat.pdf]

    def test_invalid_format_rejected(self, project):
        result = runner.invoke(app, ["build", "--format", "docx"])
        assert result.exit_code != 0

    @pytest.mark.parametrize(
        "command,fmt",
        [("html", OutputFormat.html), ("ebook", OutputFormat.ebook), ("pdf", OutputFormat.pdf)],
    )
    def test_single_stage_commands(self, project, command, fmt):
        with patch("docsbuild.cli.run_build", return_value=_report()) as b:
            result = runner.invoke(app, [command])
        assert result.exit_code == 0, result.output
        assert b.call_args[0][1] == [fmt]

    def test_failures_exit_non_zero(self, project):
        report = _report(ConversionStatus.succeeded, ConversionStatus.failed)
        with patch("docsbuild.cli.run_build", return_value=report):
            result = runner.invoke(app, ["build"])

        assert result.exit_code == 1
        assert "Build Failed" in result.output
        assert "tutorials/doc1" in result.output

    def test_skipped_only_is_success(self, project):
        with patch("docsbuild.cli.run_build", return_value=_report(ConversionStatus.skipped)):
            result = runner.invoke(app, ["build"])
        assert result.exit_code == 0

    def test_collection_error_exits_1(self, project):
        with patch("docsbuild.cli.run_build", side_effect=FileNotFoundError("Docs directory not found: docs")):
            result = runner.invoke(app, ["build"])
        assert result.exit_code == 1
        assert "Docs directory not found" in result.output


# ---------------------------------------------------------------------------
# collect / documents
# ---------------------------------------------------------------------------


class TestCollectCommands:
    def test_collect_stages_docs(self, project):
        result = runner.invoke(app, ["collect"])

        assert result.exit_code == 0, result.output
        assert "tutorials/3.0/using" in result.output
        staged = project / "build" / "source" / "tutorials" / "3.0" / "using.md"
        assert "version: 3.1.0" in staged.read_text()

    def test_documents_lists_without_copying(self, project):
        result = runner.invoke(app, ["documents"])

        assert result.exit_code == 0, result.output
        assert "articles/intro" in result.output
        assert "tutorials" in result.output
        assert not (project / "build").exists()

    def test_documents_flags_unknown_types(self, project):
        (project / "docs" / "guides").mkdir()
        (project / "docs" / "guides" / "setup.md").write_text("# Setup")
        result = runner.invoke(app, ["documents"])
        assert "unknown type" in result.output

    def test_root_document_reported(self, project):
        (project / "docs" / "README.md").write_text("# Readme")
        result = runner.invoke(app, ["documents"])
        assert result.exit_code == 1
        assert "Cannot classify" in result.output

    def test_missing_docs_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
        result = runner.invoke(app, ["collect"])
        assert result.exit_code == 1
        assert "Docs directory not found" in result.output


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_writes_template(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0, result.output
        raw = yaml.safe_load((tmp_path / "docsbuild.yaml").read_text())
        assert raw["conversions"]["tutorials"] == ["html", "ebook", "pdf"]

    def test_init_refuses_overwrite(self, project):
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_force(self, project):
        result = runner.invoke(app, ["config", "init", "--force"])
        assert result.exit_code == 0
        assert "3.0.11.RELEASE" in (project / "docsbuild.yaml").read_text()

    def test_show(self, project):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "3.1.0" in result.output
        assert "18082" in result.output
        assert "# source: docsbuild.yaml" in result.output

    def test_show_defaults_source(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "home")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert "built-in defaults" in result.output

    def test_bad_config_path(self, project):
        result = runner.invoke(app, ["--config", "missing.yaml", "config", "show"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output
