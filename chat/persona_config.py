"""
Create and edit personas for the `config persona` command.

Models are stored in config.yml; system prompts in <config_dir>/<name>.txt.
"""

import logging
from pathlib import Path

import yaml

from config import DEFAULT_MODEL, Settings, get_system_prompt_file, read_config_file
from chat.errors import ConfigParseError
from chat.personas import PersonaRegistry

logger = logging.getLogger(__name__)

YES_ANSWERS = ("y", "Y")
NO_ANSWERS = ("n", "N", "exit", "quit")


def confirm_with_user(question: str, read_line=input) -> bool:
    """Ask until the user answers y or n (exit/quit count as no)."""
    print(question)
    while True:
        try:
            answer = read_line("\n≫ ").strip()
        except (KeyboardInterrupt, EOFError):
            print()
            return False

        if answer in NO_ANSWERS:
            return False
        if answer in YES_ANSWERS:
            return True
        print("please enter 'y' or 'n'")


def write_config_file(config_file: Path, raw: dict):
    with open(config_file, "w", encoding="utf-8") as f:
        yaml.safe_dump(raw, f, sort_keys=False, allow_unicode=True)


def set_persona_model(raw: dict, name: str, model: str, config_file: Path) -> bool:
    """
    Set the model for `name` in the raw config, adding the persona if needed.

    Returns:
        True if the persona was newly added
    """
    personas = raw.setdefault("personas", [])

    if isinstance(personas, dict):
        body = personas.get(name)
        added = body is None
        if isinstance(body, dict):
            body["model"] = model
        else:
            personas[name] = {"model": model}
        return added

    if not isinstance(personas, list):
        raise ConfigParseError(f"'personas' in '{config_file}' must be a list or a mapping")

    for entry in personas:
        if isinstance(entry, dict) and entry.get("name") == name:
            entry["model"] = model
            return False

    personas.append({"name": name, "model": model})
    return True


def edit_persona(
    settings: Settings,
    name: str,
    model: str | None = None,
    system: str | None = None,
    read_line=input,
) -> bool:
    """
    Update (or, after confirmation, create) a persona.

    Args:
        settings: Loaded settings; personas and config paths come from here
        name: Persona to edit
        model: New model, if changing it (new personas default to DEFAULT_MODEL)
        system: New system prompt text, if changing it
        read_line: Input function used for the confirmation question

    Returns:
        False if the user declined to create the persona, True otherwise
    """
    exists = name in PersonaRegistry.from_settings(settings).names()

    if not exists:
        if not confirm_with_user(f"persona [{name}] doesn't exist. add it?", read_line):
            return False
        model = model or DEFAULT_MODEL

    if model:
        raw = read_config_file(settings.config_file)
        set_persona_model(raw, name, model, settings.config_file)
        write_config_file(settings.config_file, raw)
        logger.debug("Set model for %s to %s in %s", name, model, settings.config_file)

    if system is not None:
        system_file = get_system_prompt_file(settings.config_dir, name)
        system_file.write_text(system, encoding="utf-8")
        logger.debug("Wrote system prompt %s", system_file)

    return True
