"""
One-shot and interactive sessions with a persona.

Maintains conversation history, asks the title persona for a topic slug
when the session ends, and saves the transcript to the log directory.

IMPORTANT: Each completion request receives the FULL history from the
system turn onwards, so the persona always sees the whole conversation.
"""

import contextlib
import logging
import sys
import unicodedata
from datetime import datetime
from pathlib import Path

from rich.console import Console

from config import MAX_TITLE_BYTES, TITLE_MAX_CONTEXT_TOKENS, UNKNOWN_TITLE
from chat.client import ASSISTANT, SYSTEM, USER, CompletionClient, Turn
from chat.errors import CompletionError, LogWriteError
from chat.personas import Persona
from chat.save import format_timestamp, save_transcript
from chat.tokens import truncate_to_tokens
from chat.transcript import (
    build_title_request,
    render_ask_transcript,
    render_chat_transcript,
    render_conversation,
)

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit")

ASK_MODE = "ask"
CHAT_MODE = "chat"

INPUT_PROMPT = "\n≫ "
REPLY_PREFIX = "╰─ "


def build_user_prompt(prompt: str, stdin=None) -> str:
    """
    Combine the CLI prompt with piped input.

    Piped input (stdin is not a terminal) is read fully and appended after
    two newlines. Without a CLI prompt the piped text is used on its own.
    """
    if stdin is None:
        stdin = sys.stdin
    prompt = prompt or ""

    if stdin is not None and not stdin.isatty():
        piped = stdin.read()
        if piped:
            prompt = f"{prompt}\n\n{piped}" if prompt else piped
    return prompt


def sanitize_title(title: str) -> str:
    """
    Single-line, filename-safe title, or the unknown title.

    Path separators and control characters become "-", and the result is
    cut to MAX_TITLE_BYTES of UTF-8.
    """
    title = "".join(
        "-" if char in "/\\" or unicodedata.category(char) == "Cc" else char
        for char in title.strip()
    )
    title = title.encode("utf-8")[:MAX_TITLE_BYTES].decode("utf-8", errors="ignore")
    return title.strip(" -") or UNKNOWN_TITLE


class ChatSession:
    """
    A conversation with one chat persona.

    History always starts with exactly one system turn holding the chat
    persona's system prompt; submit() appends a user and an assistant turn.
    """

    def __init__(
        self,
        chat_persona: Persona,
        title_persona: Persona,
        client: CompletionClient,
        log_dir: Path,
        mode: str = ASK_MODE,
        quiet: bool = False,
        no_log: bool = False,
        console: Console | None = None,
    ):
        self.chat_persona = chat_persona
        self.title_persona = title_persona
        self.client = client
        self.log_dir = Path(log_dir)
        self.mode = mode
        self.quiet = quiet
        self.no_log = no_log
        self.console = console or Console(stderr=True)
        self.history = [Turn(SYSTEM, chat_persona.load_system_prompt())]

    @property
    def system_prompt(self) -> str:
        return self.history[0].content

    def say(self, message: str = ""):
        """Print UX chatter unless quiet."""
        if not self.quiet:
            print(message)

    def waiting(self):
        """Spinner on stderr while a request is in flight; nothing when quiet."""
        if self.quiet:
            return contextlib.nullcontext()
        return self.console.status(REPLY_PREFIX, spinner="dots", spinner_style="cyan")

    def submit(self, prompt: str) -> str:
        """
        Send a user message with the full history and record the reply.

        Raises:
            CompletionError: the user turn is removed before re-raising
        """
        self.history.append(Turn(USER, prompt))
        try:
            with self.waiting():
                reply = self.client.complete(self.chat_persona.model, self.history)
        except CompletionError:
            self.history.pop()
            raise
        self.history.append(Turn(ASSISTANT, reply))
        return reply

    def generate_title(self) -> str:
        """
        Ask the title persona for a short topic slug.

        Any failure yields UNKNOWN_TITLE instead of aborting the session.
        """
        title_prompt = self.title_persona.system_prompt
        if title_prompt is None:
            return UNKNOWN_TITLE

        conversation = render_conversation(self.history)
        try:
            conversation = truncate_to_tokens(
                conversation, TITLE_MAX_CONTEXT_TOKENS, self.title_persona.model
            )
        except Exception as e:
            logger.warning("could not load tokenizer, trimming title context by characters: %s", e)
            conversation = conversation[:TITLE_MAX_CONTEXT_TOKENS]

        messages = [
            Turn(SYSTEM, title_prompt),
            Turn(USER, build_title_request(self.system_prompt, conversation)),
        ]
        try:
            with self.waiting():
                title = self.client.complete(self.title_persona.model, messages)
        except CompletionError as e:
            logger.warning("could not complete request to openai for title slug: %s", e)
            return UNKNOWN_TITLE
        return sanitize_title(title)

    def render(self, title: str, timestamp: str) -> str:
        if self.mode == ASK_MODE and len(self.history) >= 3:
            return render_ask_transcript(
                title,
                timestamp,
                prompt=self.history[1].content,
                response=self.history[2].content,
                system_prompt=self.system_prompt,
            )
        return render_chat_transcript(title, timestamp, self.history, self.system_prompt)

    def end(self, now: datetime | None = None) -> Path | None:
        """
        Title, render and save the transcript.

        Returns:
            Path to the saved log, or None when logging is off or the write failed
        """
        if self.no_log:
            return None

        title = self.generate_title()
        timestamp = format_timestamp(now)

        try:
            filepath = save_transcript(self.log_dir, timestamp, title, self.render(title, timestamp))
        except LogWriteError as e:
            if title == UNKNOWN_TITLE:
                return self._warn_unsaved(e)
            logger.warning("%s; retrying as %s", e, UNKNOWN_TITLE)
            try:
                filepath = save_transcript(
                    self.log_dir, timestamp, UNKNOWN_TITLE, self.render(UNKNOWN_TITLE, timestamp)
                )
            except LogWriteError as retry_error:
                return self._warn_unsaved(retry_error)

        if not self.quiet:
            print(f"✓ Saved to: {filepath}")
        return filepath

    def _warn_unsaved(self, error: LogWriteError):
        logger.warning("%s", error)
        print(f"Warning: {error}", file=sys.stderr)
        return None


def run_one_shot(session: ChatSession, prompt: str) -> Path | None:
    """Ask a single question, print the reply and log it."""
    session.say("asking " + session.chat_persona.name + "...")

    reply = session.submit(prompt)
    print(reply if session.quiet else REPLY_PREFIX + reply)

    return session.end()


def run_interactive(session: ChatSession, read_line=input, initial_prompt: str | None = None) -> Path | None:
    """
    Chat until the user types exit/quit, presses Ctrl-C or closes stdin.

    Args:
        session: Session in CHAT_MODE
        read_line: Callable taking the prompt string and returning one line
        initial_prompt: Submitted before the first read when given

    Returns:
        Path to the saved transcript, if any
    """
    session.say("chatting with " + session.chat_persona.name + "!")

    if initial_prompt:
        print(REPLY_PREFIX + session.submit(initial_prompt))

    while True:
        try:
            user_input = read_line(INPUT_PROMPT)
        except (KeyboardInterrupt, EOFError):
            print()
            break

        user_input = user_input.strip()
        if user_input in EXIT_COMMANDS:
            break

        reply = session.submit(user_input)
        print(REPLY_PREFIX + reply)

    session.say("chat ended!")
    return session.end()
