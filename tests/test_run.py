import io
import os

import pytest

import run
from chat.client import CompletionClient
from tests.fakes import FakeOpenAI


@pytest.fixture
def piped_nothing(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO(""))


@pytest.fixture
def env(monkeypatch, log_dir):
    monkeypatch.setenv("YOO_LOG_DIR", str(log_dir))
    for name in ("YOO_DEFAULT_PERSONA", "YOO_TITLE_PERSONA", "YOO_SECRETS_OPENAI_KEY", "YOO_VIEWER"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_client(monkeypatch):
    fake = FakeOpenAI()
    monkeypatch.setattr(run, "CompletionClient", lambda api_key=None: CompletionClient(client=fake))
    return fake


def test_bare_words_become_ask_prompt():
    args = run.parse_command(["how", "are", "you"])
    assert args.command == "ask"
    assert args.handler is run.handle_ask
    assert args.prompt_words == ["how", "are", "you"]


def test_flags_before_command_are_kept():
    args = run.parse_command(["--persona", "chat", "--quiet", "chat"])
    assert args.command == "chat"
    assert args.persona == "chat"
    assert args.quiet


def test_option_values_are_not_commands():
    args = run.parse_command(["--persona", "who", "hello"])
    assert args.command == "ask"
    assert args.persona == "who"
    assert args.prompt_words == ["hello"]


def test_command_word_starting_a_question_is_asked():
    args = run.parse_command(["who", "invented", "python?"])
    assert args.handler is run.handle_ask
    assert args.prompt_words == ["who", "invented", "python?"]


@pytest.mark.parametrize("argv", [
    ["latest", "news", "on", "rust"],
    ["peep", "at", "this", "--quiet"],
    ["config", "files", "in", "yaml?"],
])
def test_command_word_with_extra_words_is_asked(argv):
    args = run.parse_command(argv)
    assert args.command == "ask"
    assert args.prompt_words[0] == argv[0]


def test_explicit_ask_keeps_command_word():
    args = run.parse_command(["ask", "who", "am", "i"])
    assert args.handler is run.handle_ask
    assert args.prompt_words == ["who", "am", "i"]


def test_config_persona_command():
    args = run.parse_command(["config", "persona", "pirate", "--model", "gpt-4o", "--system", "Arr."])
    assert args.handler is run.handle_config
    assert (args.name, args.model, args.system) == ("pirate", "gpt-4o", "Arr.")


@pytest.mark.parametrize("command", ["peep", "latest", "who"])
def test_simple_commands(command):
    args = run.parse_command([command, "--no-log"])
    assert args.command == command
    assert args.no_log


def test_one_shot_end_to_end(config_dir, log_dir, env, piped_nothing, fake_client, capsys):
    fake_client.replies = ["pong", "ping-pong"]

    code = run.main(["--config", str(config_dir / "config.yml"), "ping"])

    assert code == 0
    assert "╰─ pong" in capsys.readouterr().out
    [log_file] = list(log_dir.iterdir())
    assert log_file.name.endswith(".ping-pong.md")


def test_prompt_flag_with_piped_input(config_dir, env, monkeypatch, fake_client):
    monkeypatch.setattr("sys.stdin", io.StringIO("diff --git a b"))

    code = run.main(["--config", str(config_dir / "config.yml"), "--no-log", "--quiet", "--prompt", "commit msg"])

    assert code == 0
    assert fake_client.calls[0]["messages"][1]["content"] == "commit msg\n\ndiff --git a b"


def test_empty_prompt_exits_nonzero(config_dir, env, piped_nothing, fake_client, capsys):
    assert run.main(["--config", str(config_dir / "config.yml")]) == 1
    assert "Nothing to ask" in capsys.readouterr().out
    assert fake_client.calls == []


def test_chat_command(config_dir, env, monkeypatch, fake_client, capsys):
    monkeypatch.setattr("sys.stdin", FakeTTYInput(["hello\n", "exit\n"]))

    code = run.main(["chat", "--config", str(config_dir / "config.yml"), "--no-log"])

    assert code == 0
    out = capsys.readouterr().out
    assert "chatting with archie!" in out
    assert "chat ended!" in out
    assert len(fake_client.calls) == 1


def test_missing_config_exits_nonzero(tmp_path, env, capsys):
    assert run.main(["who", "--config", str(tmp_path / "missing.yml")]) == 1
    assert "not found" in capsys.readouterr().out


def test_missing_system_prompt_exits_nonzero(config_dir, env, piped_nothing, fake_client, capsys):
    (config_dir / "archie.txt").unlink()

    assert run.main(["--config", str(config_dir / "config.yml"), "ping"]) == 1
    assert "system prompt file could not be read" in capsys.readouterr().out


def test_who_prefers_flag(config_dir, env, capsys):
    assert run.main(["who", "--config", str(config_dir / "config.yml")]) == 0
    assert capsys.readouterr().out == "archie\n"

    assert run.main(["who", "--persona", "terse", "--config", str(config_dir / "config.yml")]) == 0
    assert capsys.readouterr().out == "terse\n"


def test_peep_prints_latest(config_dir, log_dir, env, capsys):
    log_dir.mkdir()
    older = log_dir / "2023-01-01--00-00-00-UTC.old.md"
    newer = log_dir / "2023-01-02--00-00-00-UTC.new.md"
    older.write_text("old", encoding="utf-8")
    newer.write_text("new", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))

    assert run.main(["peep", "--config", str(config_dir / "config.yml")]) == 0
    assert capsys.readouterr().out.strip() == str(newer)


def test_peep_without_logs(config_dir, env, capsys):
    assert run.main(["peep", "--config", str(config_dir / "config.yml")]) == 1
    assert "No log files found." in capsys.readouterr().out


def test_latest_prints_when_no_viewer(config_dir, log_dir, env, monkeypatch, capsys):
    log_dir.mkdir()
    (log_dir / "2023-01-01--00-00-00-UTC.only.md").write_text("# only", encoding="utf-8")
    monkeypatch.setattr(run.shutil, "which", lambda name: None)

    assert run.main(["latest", "--config", str(config_dir / "config.yml")]) == 0
    assert "# only" in capsys.readouterr().out


def test_latest_uses_viewer(config_dir, log_dir, env, monkeypatch):
    log_dir.mkdir()
    log_file = log_dir / "2023-01-01--00-00-00-UTC.only.md"
    log_file.write_text("# only", encoding="utf-8")
    monkeypatch.setenv("YOO_VIEWER", "myviewer")
    launched = []
    monkeypatch.setattr(run.subprocess, "run", lambda cmd, check: launched.append(cmd))

    assert run.main(["latest", "--config", str(config_dir / "config.yml")]) == 0
    assert launched == [["myviewer", str(log_file)]]


def test_latest_uses_viewer_from_config(config_dir, log_dir, env, monkeypatch):
    log_dir.mkdir()
    log_file = log_dir / "2023-01-01--00-00-00-UTC.only.md"
    log_file.write_text("# only", encoding="utf-8")
    config_file = config_dir / "config.yml"
    config_file.write_text(config_file.read_text(encoding="utf-8") + "viewer: glow\n", encoding="utf-8")
    launched = []
    monkeypatch.setattr(run.subprocess, "run", lambda cmd, check: launched.append(cmd))

    assert run.main(["latest", "--config", str(config_file)]) == 0
    assert launched == [["glow", str(log_file)]]


def test_config_persona_without_name_prints_active(config_dir, env, capsys):
    assert run.main(["config", "persona", "--config", str(config_dir / "config.yml")]) == 0
    assert capsys.readouterr().out == "archie\n"


class FakeTTYInput(io.StringIO):
    """Terminal stdin: input() reads from it, build_user_prompt leaves it alone."""

    def __init__(self, lines):
        super().__init__("".join(lines))

    def isatty(self):
        return True
