"""End-to-end pipeline tests with mocked converters and server."""

from unittest.mock import MagicMock, patch

import pytest

from docsbuild.config.models import OutputFormat
from docsbuild.converter.models import ConversionStatus
from docsbuild.errors import ServerStartError
from docsbuild.pipeline import build

BASE_URL = "http://localhost:18080/thymeleaf-docs"


@pytest.fixture
def mock_server():
    instance = MagicMock(name="ServerController_instance")
    instance.base_url = BASE_URL
    with patch("docsbuild.pipeline.ServerController", return_value=instance) as cls:
        cls.instance = instance
        yield cls


def _outputs_for(config, doc_id):
    out = config.output_dir
    return sorted(
        p.relative_to(out).as_posix()
        for p in out.rglob("*")
        if p.is_file() and p.relative_to(out).as_posix().rsplit(".", 1)[0] == doc_id
    )


def test_tutorial_gets_every_format(build_config, fake_runner, mock_server):
    report = build(build_config, runner=fake_runner)

    assert report.ok
    assert _outputs_for(build_config, "tutorials/3.0/using") == [
        "tutorials/3.0/using.epub",
        "tutorials/3.0/using.html",
        "tutorials/3.0/using.mobi",
        "tutorials/3.0/using.pdf",
    ]


def test_article_gets_html_only(build_config, fake_runner, mock_server):
    report = build(build_config, runner=fake_runner)

    assert _outputs_for(build_config, "articles/intro") == ["articles/intro.html"]
    formats = {r.format for r in report.results if r.doc_id == "articles/intro"}
    assert formats == {OutputFormat.html}


def test_html_only_does_not_start_server(build_config, fake_runner, mock_server):
    report = build(build_config, [OutputFormat.html], runner=fake_runner)
    assert set(fake_runner.tools_called()) == {"pandoc"}
    assert len(report.results) == 3
    mock_server.assert_not_called()


def test_pdf_runs_html_first(build_config, fake_runner, mock_server):
    build(build_config, [OutputFormat.pdf], runner=fake_runner)
    tools = fake_runner.tools_called()
    assert "ebook-convert" not in tools
    assert tools.index("wkhtmltopdf") > max(i for i, t in enumerate(tools) if t == "pandoc")
    mock_server.instance.__exit__.assert_called_once()


def test_server_started_with_site_dir(build_config, fake_runner, mock_server):
    build(build_config, [OutputFormat.pdf], runner=fake_runner)
    kwargs = mock_server.call_args.kwargs
    assert kwargs["site_dir"] == build_config.paths.site_dir.resolve()
    assert kwargs["log_path"] == build_config.paths.build_dir / "server.log"


def test_server_start_failure_fails_pdfs(build_config, fake_runner, mock_server):
    mock_server.instance.__enter__.side_effect = ServerStartError("Port 8080 is already in use")

    report = build(build_config, runner=fake_runner)

    assert not report.ok
    assert {r.format for r in report.failed} == {OutputFormat.pdf}
    assert len(report.failed) == 2
    assert "already in use" in report.failed[0].message
    # HTML and e-books are unaffected
    assert report.find("tutorials/3.0/using", OutputFormat.html).status == (
        ConversionStatus.succeeded
    )
    assert "wkhtmltopdf" not in fake_runner.tools_called()


def test_server_stopped_when_rendering_raises(build_config, fake_runner, mock_server):
    with patch(
        "docsbuild.pipeline.ConversionDispatcher.generate_pdfs",
        side_effect=RuntimeError("unexpected"),
    ):
        with pytest.raises(RuntimeError):
            build(build_config, runner=fake_runner)
    mock_server.instance.__exit__.assert_called_once()


def test_failed_html_skips_pdf(build_config, failing_runner, mock_server):
    runner = failing_runner("using.md")
    report = build(build_config, runner=runner)

    assert not report.ok
    assert report.find("tutorials/3.0/using", OutputFormat.pdf).status == (
        ConversionStatus.skipped
    )
    assert not (build_config.output_dir / "tutorials" / "3.0" / "using.pdf").exists()


def test_no_pdf_types_skips_server(build_config, fake_runner, mock_server):
    build_config.conversions = {"articles": {OutputFormat.html}, "tutorials": {OutputFormat.html}}
    report = build(build_config, runner=fake_runner)
    assert report.ok
    mock_server.assert_not_called()
