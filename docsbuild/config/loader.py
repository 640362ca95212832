"""Locate and load docsbuild.yaml.

Candidates are tried in order: the ``--config`` path, ``./docsbuild.yaml``,
then ``~/.docsbuild/config.yaml``. The first file with any content wins and
files holding only comments are passed over. With no file at all the built-in
defaults apply.

String values may reference the environment as ``${VAR}`` (empty when unset)
or ``${VAR:-fallback}``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import BuildConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "docsbuild.yaml"
USER_CONFIG = Path(".docsbuild") / "config.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_candidates(cli_path: str | None = None) -> list[Path]:
    """Paths searched for a config file, highest priority first."""
    candidates = [Path(CONFIG_FILENAME), Path.home() / USER_CONFIG]
    if cli_path:
        path = Path(cli_path)
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {cli_path}")
        candidates.insert(0, path)
    return candidates


def load_config_source(cli_path: str | None = None) -> tuple[BuildConfig, Path | None]:
    """Load the effective config and return it with the file it came from.

    The path is None when the defaults were used.
    """
    for path in config_candidates(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            logger.debug("Skipping empty config file %s", path)
            continue
        try:
            config = BuildConfig(**_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return config, path
    return BuildConfig(), None


def load_config(cli_path: str | None = None) -> BuildConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    return load_config_source(cli_path)[0]


def _read_yaml(path: Path) -> dict[str, Any] | None:
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(
            f"Invalid config in {path}: expected a mapping, got {type(raw).__name__}"
        )
    return raw


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand ${VAR} and ${VAR:-fallback} references in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), obj
        )
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj



# Default YAML template for `docsbuild config init`
DEFAULT_CONFIG_TEMPLATE = """\
# docsbuild.yaml

# Update these two values when releasing a new version of the docs
project_version: "3.0.11.RELEASE"
document_date: "2018-10-29"

# Document type (folder name) -> output formats
conversions:
  articles: [html]
  tutorials: [html, ebook, pdf]

# Extra @token@ replacements applied to markdown files
# tokens:
#   vendor: "The Thymeleaf Team"

paths:
  docs_dir: "docs"
  images_dir: "images"
  scripts_dir: "scripts"
  styles_dir: "styles"
  templates_dir: "templates"
  build_dir: "build"

# External converters
tools:
  pandoc: "pandoc"
  ebook_convert: "ebook-convert"
  wkhtmltopdf: "wkhtmltopdf"
  # timeout: 600

pdf:
  footer_font_name: "Ubuntu"

# Local server used to feed HTML to wkhtmltopdf
server:
  port: 8080
  context_path: "thymeleaf-docs"
  startup_timeout: 30
  # command: ["python", "-m", "http.server", "{port}", "--directory", "{site_dir}"]
  # stop_command: []
  # ready_line: "Serving HTTP"

max_workers: 1
strict_types: false               # unknown document types abort the build

# Logging
log_level: "info"                 # debug | info | warn | error
"""
