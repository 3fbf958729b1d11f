"""
Configuration for the yoo command-line assistant.

Constants below hold the defaults; load_settings() reads the user's YAML
config, applies environment overrides and CLI flags, and returns a single
Settings object that the rest of the program receives explicitly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from chat.errors import ConfigMissingError, ConfigParseError

logger = logging.getLogger(__name__)

# ============================================================================
# File Paths
# ============================================================================
APP_NAME = "yoo"
CONFIG_DIR = Path.home() / ".config" / APP_NAME
CONFIG_FILENAME = "config.yml"
LOG_DIR = Path.home() / f".{APP_NAME}"

# Persona system prompts live next to the config file as <persona>.txt
SYSTEM_PROMPT_SUFFIX = ".txt"

# ============================================================================
# Persona Defaults
# ============================================================================
# Used whenever the requested persona is not declared in the config file
DEFAULT_PERSONA_NAME = "archie"
DEFAULT_MODEL = "gpt-4"

# Summarizes a session into a short slug for the log filename
DEFAULT_TITLE_PERSONA_NAME = "summer-slug"
DEFAULT_TITLE_MODEL = "gpt-3.5-turbo"

# ============================================================================
# Log Settings
# ============================================================================
# Title used when the title persona cannot produce one
UNKNOWN_TITLE = "unknown-topic"

# Fixed-width local time, so sorting filenames sorts them chronologically
TIMESTAMP_FORMAT = "%Y-%m-%d--%H-%M-%S-%Z"

LOG_FILE_SUFFIX = ".md"

# Maximum tokens of conversation text sent to the title persona
TITLE_MAX_CONTEXT_TOKENS = 3000

# Titles are cut to this many UTF-8 bytes to stay well under filename limits
MAX_TITLE_BYTES = 100

# ============================================================================
# Environment
# ============================================================================
ENV_PREFIX = "YOO_"

# Config keys that may be overridden from the environment
ENV_OVERRIDABLE_KEYS = [
    "default-persona",
    "title-persona",
    "log-dir",
    "viewer",
    "secrets.openai-key",
]


@dataclass
class Settings:
    """Everything a run needs, resolved once at startup."""
    config_file: Path
    config_dir: Path
    log_dir: Path
    openai_key: str | None = None
    default_persona: str = DEFAULT_PERSONA_NAME
    title_persona: str = DEFAULT_TITLE_PERSONA_NAME
    personas: list[dict] = field(default_factory=list)
    persona: str | None = None  # --persona flag
    quiet: bool = False
    no_log: bool = False
    viewer: str | None = None  # program used by `latest`

    @property
    def requested_persona(self) -> str:
        """Chat persona name: flag first, then the configured default."""
        return self.persona or self.default_persona or DEFAULT_PERSONA_NAME


# ============================================================================
# Helper Functions
# ============================================================================
def get_config_file(config_dir: Path = CONFIG_DIR) -> Path:
    """Default location of the YAML config file."""
    return config_dir / CONFIG_FILENAME


def get_system_prompt_file(config_dir: Path, persona_name: str) -> Path:
    """
    Path of the system prompt for a persona.

    Args:
        config_dir: Directory holding config.yml
        persona_name: Persona identifier, e.g. "archie"

    Returns:
        Path such as ~/.config/yoo/archie.txt
    """
    return config_dir / f"{persona_name}{SYSTEM_PROMPT_SUFFIX}"


def env_var_name(key: str) -> str:
    """Map a config key to its environment variable (secrets.openai-key -> YOO_SECRETS_OPENAI_KEY)."""
    return ENV_PREFIX + key.upper().replace(".", "_").replace("-", "_")


def read_config_file(config_file: Path) -> dict:
    """
    Parse the YAML config file.

    Raises:
        ConfigMissingError: if the file does not exist or cannot be read
        ConfigParseError: if the file is not a YAML mapping
    """
    if not config_file.exists():
        raise ConfigMissingError(
            f"yoo depends on '{config_file}', and it was not found."
        )

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(
            f"yoo had a problem parsing config from '{config_file}': {e}"
        ) from e
    except OSError as e:
        raise ConfigMissingError(f"Could not read config file '{config_file}': {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigParseError(
            f"yoo had a problem parsing config from '{config_file}': top level must be a mapping"
        )
    return raw


def normalize_personas(raw_personas, config_file: Path) -> list[dict]:
    """
    Accept personas as a list of {name, model} or a mapping of name -> {model}.

    Returns:
        List of {"name": ..., "model": ...} dicts in declaration order
    """
    if raw_personas is None:
        return []

    if isinstance(raw_personas, dict):
        entries = []
        for name, body in raw_personas.items():
            model = body.get("model") if isinstance(body, dict) else body
            entries.append({"name": str(name), "model": model or DEFAULT_MODEL})
        return entries

    if not isinstance(raw_personas, list):
        raise ConfigParseError(f"'personas' in '{config_file}' must be a list or a mapping")

    entries = []
    for item in raw_personas:
        if not isinstance(item, dict) or not item.get("name"):
            raise ConfigParseError(f"Every persona in '{config_file}' needs a name: {item!r}")
        entries.append({"name": str(item["name"]), "model": item.get("model") or DEFAULT_MODEL})
    return entries


def _lookup(raw: dict, dotted_key: str):
    node = raw
    for part in dotted_key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def apply_env_overrides(values: dict, environ) -> dict:
    """Overlay YOO_* environment variables onto flattened config values."""
    merged = dict(values)
    for key in ENV_OVERRIDABLE_KEYS:
        env_value = environ.get(env_var_name(key))
        if env_value:
            logger.debug("Config key %s overridden from environment", key)
            merged[key] = env_value
    return merged


def load_settings(
    config_file: Path | str | None = None,
    persona: str | None = None,
    quiet: bool = False,
    no_log: bool = False,
    environ=None,
) -> Settings:
    """
    Build Settings from the config file, environment variables and CLI flags.

    Precedence for each value: CLI flag, then environment, then config file,
    then the defaults defined in this module.

    Args:
        config_file: Explicit config path (--config); defaults to ~/.config/yoo/config.yml
        persona: Value of the --persona flag
        quiet: Suppress UX chatter
        no_log: Skip writing the transcript
        environ: Mapping used instead of os.environ (for tests)

    Returns:
        Fully resolved Settings
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    config_file = Path(config_file).expanduser() if config_file else get_config_file()
    raw = read_config_file(config_file)

    values = {key: _lookup(raw, key) for key in ENV_OVERRIDABLE_KEYS}
    values = apply_env_overrides(values, environ)

    openai_key = values["secrets.openai-key"] or environ.get("OPENAI_API_KEY")
    log_dir = Path(values["log-dir"]).expanduser() if values["log-dir"] else LOG_DIR

    settings = Settings(
        config_file=config_file,
        config_dir=config_file.parent,
        log_dir=log_dir,
        openai_key=openai_key,
        default_persona=values["default-persona"] or DEFAULT_PERSONA_NAME,
        title_persona=values["title-persona"] or DEFAULT_TITLE_PERSONA_NAME,
        personas=normalize_personas(raw.get("personas"), config_file),
        persona=persona,
        quiet=quiet,
        no_log=no_log,
        viewer=values["viewer"],
    )
    logger.debug("Loaded settings from %s (%d personas)", config_file, len(settings.personas))
    return settings
