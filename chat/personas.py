"""
Persona registry: maps configured persona names to models and system prompts.

Two personas are resolved per session:
- the chat persona, which drives the conversation
- the title persona, which turns the conversation into a short filename slug
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from config import (
    DEFAULT_MODEL,
    DEFAULT_PERSONA_NAME,
    DEFAULT_TITLE_MODEL,
    DEFAULT_TITLE_PERSONA_NAME,
    Settings,
    get_system_prompt_file,
)
from chat.errors import SystemPromptMissingError

logger = logging.getLogger(__name__)


@dataclass
class Persona:
    """A named model plus the system prompt stored in <name>.txt."""
    name: str
    model: str
    system_prompt_file: Path
    system_prompt: str | None = None

    def load_system_prompt(self) -> str:
        """
        Read the system prompt from disk, caching it on the persona.

        Raises:
            SystemPromptMissingError: if the file is missing or unreadable
        """
        if self.system_prompt is None:
            try:
                self.system_prompt = self.system_prompt_file.read_text(encoding="utf-8")
            except OSError as e:
                raise SystemPromptMissingError(
                    self.name, self.system_prompt_file, e.strerror or str(e)
                ) from e
        return self.system_prompt


class PersonaRegistry:
    """Personas declared in config, looked up by name."""

    def __init__(self, entries: list[dict], config_dir: Path):
        self.entries = entries
        self.config_dir = config_dir

    @classmethod
    def from_settings(cls, settings: Settings) -> "PersonaRegistry":
        return cls(settings.personas, settings.config_dir)

    def names(self) -> list[str]:
        return [entry["name"] for entry in self.entries]

    def find(self, name: str) -> dict | None:
        """First configured entry whose name matches exactly, or None."""
        for entry in self.entries:
            if entry["name"] == name:
                return entry
        return None

    def resolve(self, name: str | None, fallback_name: str, fallback_model: str) -> Persona:
        """
        Return the persona called `name`, or the hardcoded fallback when it is not configured.

        The system prompt is not read here; call Persona.load_system_prompt().
        """
        entry = self.find(name) if name else None
        if entry is None:
            logger.debug("Persona %r not configured, using %s/%s", name, fallback_name, fallback_model)
            entry = {"name": fallback_name, "model": fallback_model}

        return Persona(
            name=entry["name"],
            model=entry["model"],
            system_prompt_file=get_system_prompt_file(self.config_dir, entry["name"]),
        )

    def resolve_chat(self, settings: Settings) -> Persona:
        """
        Resolve the chat persona and load its system prompt.

        Raises:
            SystemPromptMissingError: the chat persona cannot run without its prompt
        """
        persona = self.resolve(settings.requested_persona, DEFAULT_PERSONA_NAME, DEFAULT_MODEL)
        persona.load_system_prompt()
        return persona

    def resolve_title(self, settings: Settings) -> Persona:
        """
        Resolve the title persona; a missing system prompt is only a warning.

        When the prompt cannot be read the persona comes back with
        system_prompt=None and the session falls back to the unknown title.
        """
        persona = self.resolve(
            settings.title_persona, DEFAULT_TITLE_PERSONA_NAME, DEFAULT_TITLE_MODEL
        )
        try:
            persona.load_system_prompt()
        except SystemPromptMissingError as e:
            logger.warning("Title persona unavailable: %s", e)
        return persona
