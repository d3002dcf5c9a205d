"""Startup configuration.

Settings are loaded exactly once when the process starts and handed to the
pipeline by reference; nothing mutates them afterwards. Two sources feed
them:

- the process environment, which must carry a non-empty
  `SSH_KEY_PASSPHRASE` (without it the bot refuses to start);
- an optional `relbot.toml` at the app root for the key identity, the bot
  commit identity and the chat trigger bindings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_list, get_str, get_table

__all__ = [
    "ConfigError",
    "Credentials",
    "Settings",
    "Trigger",
    "load_settings",
    "PASSPHRASE_ENV",
    "APP_ROOT_ENV",
    "CONFIG_FILE_NAME",
]

PASSPHRASE_ENV = "SSH_KEY_PASSPHRASE"
APP_ROOT_ENV = "RELBOT_APP_ROOT"
CONFIG_FILE_NAME = "relbot.toml"

DEFAULT_KEY_IDENTITY = "relbot"
DEFAULT_GIT_HOST = "github.com"
DEFAULT_BOT_NAME = "relbot"
DEFAULT_BOT_EMAIL = "relbot@users.noreply.github.com"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error that prevents the process from starting."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class Credentials:
    """SSH key pair plus the passphrase that unlocks it."""

    passphrase: str
    public_key: Path
    private_key: Path

    def __repr__(self) -> str:
        return f"Credentials(public_key={self.public_key!s}, private_key={self.private_key!s})"


@dataclass(frozen=True, slots=True)
class Trigger:
    """A chat phrase bound to one repository."""

    phrase: str
    owner: str
    repo: str

    def matches(self, text: str) -> bool:
        return self.phrase.lower() in text.lower()


@dataclass(frozen=True, slots=True)
class Settings:
    app_root: Path
    credentials: Credentials
    git_host: str = DEFAULT_GIT_HOST
    bot_name: str = DEFAULT_BOT_NAME
    bot_email: str = DEFAULT_BOT_EMAIL
    triggers: tuple[Trigger, ...] = field(default_factory=tuple)

    @property
    def tmp_root(self) -> Path:
        """Parent of every release workspace."""
        return self.app_root / "tmp"

    @property
    def askpass_path(self) -> Path:
        return self.tmp_root / ".askpass"

    def find_trigger(self, text: str) -> Trigger | None:
        for trigger in self.triggers:
            if trigger.matches(text):
                return trigger
        return None


def key_paths(app_root: Path, identity: str) -> tuple[Path, Path]:
    """Return (public, private) key paths for an identity."""
    keys = app_root / "ssh-keys"
    return (keys / f"{identity}.pub", keys / identity)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Ok({})
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def _parse_triggers(data: StrDict, path: Path) -> Result[tuple[Trigger, ...], ConfigError]:
    raw = get_list(data, "triggers") or []
    out: list[Trigger] = []
    for i, item in enumerate(raw):
        tbl = as_str_dict(item)
        if tbl is None:
            return Err(ConfigError(f"triggers[{i}] must be a table", path=path))
        phrase = get_str(tbl, "phrase")
        owner = get_str(tbl, "owner")
        repo = get_str(tbl, "repo")
        if phrase is None or owner is None or repo is None:
            return Err(ConfigError(f"triggers[{i}] needs phrase, owner and repo", path=path))
        out.append(Trigger(phrase=phrase, owner=owner, repo=repo))
    return Ok(tuple(out))


def resolve_app_root(environ: Mapping[str, str]) -> Path:
    env = environ.get(APP_ROOT_ENV)
    if env:
        return Path(env).expanduser().resolve()
    return Path.cwd().resolve()


def load_settings(
    environ: Mapping[str, str],
    *,
    app_root: Path | None = None,
) -> Result[Settings, ConfigError]:
    """Load settings from the environment and `relbot.toml`.

    The passphrase check happens first; when it fails nothing else is read.

    Args:
        environ: Process environment (usually `os.environ`).
        app_root: Override for the app root; defaults to `RELBOT_APP_ROOT`
            or the current directory.

    Returns:
        Ok(Settings) on success, Err(ConfigError) when startup must abort.
    """
    passphrase = environ.get(PASSPHRASE_ENV, "")
    if not passphrase:
        return Err(ConfigError(f"Specify {PASSPHRASE_ENV} in environment"))

    root = app_root if app_root is not None else resolve_app_root(environ)
    config_path = root / CONFIG_FILE_NAME
    parsed = _parse_toml(config_path)
    if isinstance(parsed, Err):
        return parsed
    data = parsed.value

    ssh: StrDict = get_table(data, "ssh") or {}
    bot: StrDict = get_table(data, "bot") or {}

    identity = get_str(ssh, "identity") or DEFAULT_KEY_IDENTITY
    public_key, private_key = key_paths(root, identity)
    for key in (public_key, private_key):
        if not key.is_file():
            return Err(ConfigError(f"SSH key not found: {key}", path=key))

    triggers = _parse_triggers(data, config_path)
    if isinstance(triggers, Err):
        return triggers

    return Ok(
        Settings(
            app_root=root,
            credentials=Credentials(
                passphrase=passphrase,
                public_key=public_key,
                private_key=private_key,
            ),
            git_host=get_str(ssh, "host") or DEFAULT_GIT_HOST,
            bot_name=get_str(bot, "name") or DEFAULT_BOT_NAME,
            bot_email=get_str(bot, "email") or DEFAULT_BOT_EMAIL,
            triggers=triggers.value,
        )
    )
