#!/usr/bin/env python3
"""
yoo - ask a persona a question from the command line.

Usage:
    python run.py [command] [options] [prompt ...]

Commands:
    ask         - One-shot question (default when no command is given)
    chat        - Interactive chat with the active persona
    config      - Edit personas: config persona [name] [--model M] [--system TEXT]
    peep        - Print the path of the most recent log file
    latest      - Open the most recent log file
    who         - Print the active persona name

A command word followed by words the command does not take is asked as a
prompt; use `ask` explicitly to ask something starting with a command word.

Examples:
    python run.py "how do I undo a git rebase?"
    git diff | python run.py --quiet "write a commit message"
    python run.py chat --persona archie
    python run.py config persona archie --model gpt-4o
    python run.py latest
"""

import argparse
import logging
import shutil
import subprocess
import sys

from config import load_settings
from chat.client import CompletionClient
from chat.errors import YooError
from chat.persona_config import edit_persona
from chat.personas import PersonaRegistry
from chat.save import find_latest_log
from chat.session import (
    ASK_MODE,
    CHAT_MODE,
    ChatSession,
    build_user_prompt,
    run_interactive,
    run_one_shot,
)

logger = logging.getLogger(__name__)

COMMANDS = ("ask", "chat", "config", "peep", "latest", "who")

# Options that consume the following argument
VALUE_OPTIONS = ("--persona", "--prompt", "--config", "--model", "--system")

# Commands that take no positional arguments
BARE_COMMANDS = ("peep", "latest", "who")

# Tried in order by `latest` when no viewer is configured
VIEWERS = ("bat", "less")


# ============================================================================
# Command Handlers
# ============================================================================
def build_session(settings, mode: str) -> ChatSession:
    registry = PersonaRegistry.from_settings(settings)
    chat_persona = registry.resolve_chat(settings)
    title_persona = registry.resolve_title(settings)
    client = CompletionClient(api_key=settings.openai_key)

    return ChatSession(
        chat_persona,
        title_persona,
        client,
        settings.log_dir,
        mode=mode,
        quiet=settings.quiet,
        no_log=settings.no_log,
    )


def handle_ask(args, settings) -> int:
    prompt = build_user_prompt(" ".join(args.prompt_words) or args.prompt)
    if not prompt.strip():
        print("Nothing to ask. Pass a prompt or pipe some input.")
        print("\nRun 'yoo --help' for more information.")
        return 1

    session = build_session(settings, ASK_MODE)
    run_one_shot(session, prompt)
    return 0


def handle_chat(args, settings) -> int:
    initial_prompt = build_user_prompt(" ".join(args.prompt_words) or args.prompt)
    session = build_session(settings, CHAT_MODE)
    run_interactive(session, initial_prompt=initial_prompt or None)
    return 0


def handle_config(args, settings) -> int:
    if not args.name:
        print(settings.requested_persona)
        return 0

    edit_persona(settings, args.name, model=args.model, system=args.system)
    return 0


def handle_peep(args, settings) -> int:
    latest = find_latest_log(settings.log_dir)
    if latest is None:
        print("No log files found.")
        return 1
    print(latest)
    return 0


def handle_latest(args, settings) -> int:
    latest = find_latest_log(settings.log_dir)
    if latest is None:
        print("No log files found.")
        return 1

    viewer = settings.viewer
    if not viewer:
        viewer = next((name for name in VIEWERS if shutil.which(name)), None)

    if viewer is None:
        print(latest.read_text(encoding="utf-8"))
        return 0

    logger.debug("Opening %s with %s", latest, viewer)
    try:
        subprocess.run([viewer, str(latest)], check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        print(f"Error launching {viewer} with latest log file: {e}")
        return 1
    return 0


def handle_who(args, settings) -> int:
    print(settings.requested_persona)
    return 0


# ============================================================================
# Argument Parsing
# ============================================================================
def add_common_options(parser: argparse.ArgumentParser):
    parser.add_argument("--persona", help="Persona to use instead of default-persona")
    parser.add_argument("--prompt", default="", help="Prompt text (used when no positional prompt is given)")
    parser.add_argument("--quiet", action="store_true", help="Only show model output (e.g. for commit messages)")
    parser.add_argument("--no-log", action="store_true", help="Do not write a transcript")
    parser.add_argument("--config", help="Config file (default is ~/.config/yoo/config.yml)")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yoo",
        description="Ask a persona a question from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Examples:" + __doc__.split("Examples:", 1)[1],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, handler, help_text in [
        ("ask", handle_ask, "One-shot question"),
        ("chat", handle_chat, "Interactive chat"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        add_common_options(sub)
        sub.add_argument("prompt_words", nargs="*", metavar="prompt", help="Prompt text")
        sub.set_defaults(handler=handler)

    config_parser = subparsers.add_parser("config", help="Edit personas")
    add_common_options(config_parser)
    config_parser.add_argument("target", choices=["persona"], help="What to configure")
    config_parser.add_argument("name", nargs="?", help="Persona to create or edit")
    config_parser.add_argument("--model", help="Model for the persona")
    config_parser.add_argument("--system", help="System prompt text for the persona")
    config_parser.set_defaults(handler=handle_config)

    for name, handler, help_text in [
        ("peep", handle_peep, "Print the most recent log path"),
        ("latest", handle_latest, "Open the most recent log"),
        ("who", handle_who, "Print the active persona"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        add_common_options(sub)
        sub.set_defaults(handler=handler)

    return parser


def positional_indexes(argv: list[str]) -> list[int]:
    """Indexes of tokens that are neither options nor option values."""
    indexes = []
    skip_next = False
    for index, token in enumerate(argv):
        if skip_next:
            skip_next = False
            continue
        if token in VALUE_OPTIONS:
            skip_next = True
            continue
        if token.startswith("-"):
            continue
        indexes.append(index)
    return indexes


def find_command_index(argv: list[str]) -> int | None:
    """
    Index of the command name in argv, or None when argv is a prompt.

    A command word followed by words the command cannot take, as in
    `yoo who invented python?`, is read as a prompt. `yoo ask ...` always asks.
    """
    indexes = positional_indexes(argv)
    if not indexes or argv[indexes[0]] not in COMMANDS:
        return None

    command = argv[indexes[0]]
    rest = [argv[index] for index in indexes[1:]]
    if command in BARE_COMMANDS and rest:
        return None
    if command == "config" and rest and (rest[0] != "persona" or len(rest) > 2):
        return None
    return indexes[0]


def parse_command(argv: list[str]) -> argparse.Namespace:
    """
    Parse argv into a namespace whose `handler` runs the command.

    Without a command name the arguments are treated as a one-shot prompt.
    """
    argv = list(argv)
    if argv and argv[0] in ("-h", "--help"):
        return build_parser().parse_args(argv)

    index = find_command_index(argv)
    if index is None:
        argv = ["ask"] + argv
    else:
        argv = [argv[index]] + argv[:index] + argv[index + 1:]

    return build_parser().parse_args(argv)


# ============================================================================
# Entry Point
# ============================================================================
def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_command(sys.argv[1:] if argv is None else argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(
            config_file=args.config,
            persona=args.persona,
            quiet=args.quiet,
            no_log=args.no_log,
        )
        return args.handler(args, settings)
    except YooError as e:
        print(e)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
