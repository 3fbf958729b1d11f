import pytest

from config import load_settings
from tests.fakes import FakeOpenAI

CONFIG_YAML = """\
secrets:
  openai-key: sk-test
default-persona: archie
title-persona: summer-slug
personas:
  - name: archie
    model: gpt-4
  - name: summer-slug
    model: gpt-3.5-turbo
  - name: terse
    model: gpt-4o-mini
"""


@pytest.fixture
def config_dir(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "config.yml").write_text(CONFIG_YAML, encoding="utf-8")
    (directory / "archie.txt").write_text("You are Archie.", encoding="utf-8")
    (directory / "summer-slug.txt").write_text("Summarize as a slug.", encoding="utf-8")
    return directory


@pytest.fixture
def log_dir(tmp_path):
    return tmp_path / "logs"


@pytest.fixture
def settings(config_dir, log_dir):
    return load_settings(
        config_file=config_dir / "config.yml",
        environ={"YOO_LOG_DIR": str(log_dir)},
    )


@pytest.fixture
def fake_openai():
    return FakeOpenAI()
