"""Persistent CLI configuration: profiles, the global default and credential sources.

Files live under the XDG directories on Linux/BSD
(``$XDG_CONFIG_HOME/firetree``, ``$XDG_DATA_HOME/firetree``) and under
``~/.firetree`` elsewhere::

    <config>/config.json            GlobalConfig (default profile)
    <config>/profiles/<name>.json   one Profile per store
    ./firetree.json                 optional project pin: {"default_profile": ...}

Every write goes through :func:`_atomic_write`, so a crash never leaves a
half-written profile behind.

:func:`resolve_connection` is what the data commands call. It merges CLI
flags, ``FIRETREE_*`` environment variables, the project file and the global
config into the profile and token a :class:`~firetree.client.Client` is built
from. The library itself never reads any of this.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from firetree.exceptions import ConfigError
from firetree.models import GlobalConfig, Profile

_APP_NAME = "firetree"
_PROJECT_FILE = "firetree.json"

ENV_PROFILE = "FIRETREE_PROFILE"
ENV_HOST = "FIRETREE_HOST"
ENV_TOKEN = "FIRETREE_TOKEN"

ADHOC_PROFILE_NAME = "adhoc"

_ModelT = TypeVar("_ModelT", bound=BaseModel)

# kind -> (XDG variable, default below $HOME, subdirectory of ~/.firetree)
_BASE_DIRS: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "data": ("XDG_DATA_HOME", (".local", "share"), "logs"),
}


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_default, fallback_sub = _BASE_DIRS[kind]
    if _is_xdg_platform():
        root = os.environ.get(env_var) or str(Path.home().joinpath(*home_default))
        path = Path(root) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json`` and ``profiles/``; created on demand."""
    return _app_dir("config")


def get_data_dir() -> Path:
    """Directory for crash logs; created on demand."""
    return _app_dir("data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(exist_ok=True)
    return path


# --- JSON files ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a synced temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    handle, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _read_json(path: Path, what: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _load_model(path: Path, model: type[_ModelT], what: str) -> _ModelT:
    data = _read_json(path, what)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _save_model(path: Path, value: BaseModel) -> None:
    _atomic_write(path, json.dumps(value.model_dump(mode="json"), indent=2) + "\n")


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / "config.json"


def load_global_config() -> GlobalConfig:
    """Return the saved :class:`GlobalConfig`, or defaults when there is none.

    Raises:
        ConfigError: If ``config.json`` exists but is unreadable or invalid.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _load_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _save_model(_global_config_path(), config)


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def _existing_profile_path(name: str) -> Path:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return path


def list_profiles() -> list[str]:
    """Names of all saved profiles, alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Read profile *name*.

    Raises:
        ConfigError: If it does not exist or does not validate.
    """
    return _load_model(_existing_profile_path(name), Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    """Write *profile* to ``profiles/<profile.name>.json``, replacing any previous one."""
    _save_model(_profile_path(profile.name), profile)


def delete_profile(name: str) -> None:
    """Remove profile *name*; :class:`ConfigError` if there is no such profile."""
    _existing_profile_path(name).unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_project_config() -> Optional[dict[str, Any]]:
    """Read ``./firetree.json``, or return ``None`` when the file is absent.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_FILE
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Resolution ---


def resolve_profile_name(cli_profile: Optional[str] = None) -> Optional[str]:
    """Pick the active profile name, or ``None`` if nothing names one.

    First match wins: ``--profile``, ``FIRETREE_PROFILE``, ``default_profile``
    in ``./firetree.json``, then ``default_profile`` in the global config.
    """
    name = cli_profile or os.environ.get(ENV_PROFILE)
    if name:
        return name
    project = load_project_config() or {}
    return project.get("default_profile") or load_global_config().default_profile


def resolve_connection(
    cli_profile: Optional[str] = None,
    cli_host: Optional[str] = None,
    cli_token: Optional[str] = None,
    cli_timeout: Optional[int] = None,
    cli_verify_ssl: Optional[bool] = None,
) -> tuple[Profile, Optional[str]]:
    """Work out which store to talk to and with which token.

    Host and token come from the CLI flag, then ``FIRETREE_HOST`` /
    ``FIRETREE_TOKEN``, then the active profile (whose ``token_source`` is
    resolved with :func:`resolve_credential`). With no profile at all a host
    alone is enough and an ad-hoc profile is used.

    Returns:
        ``(profile, token)``; *token* is ``None`` when unauthenticated.

    Raises:
        ConfigError: If no host is known, the named profile is missing, or
            its token source cannot be read.
    """
    name = resolve_profile_name(cli_profile)
    host = cli_host or os.environ.get(ENV_HOST)

    if name:
        profile = load_profile(name)
        if host:
            profile.host = host
    elif host:
        profile = Profile(name=ADHOC_PROFILE_NAME, host=host)
    else:
        raise ConfigError(
            f"No store configured: pass --host, set {ENV_HOST}, or add a profile"
        )

    if cli_timeout is not None:
        profile.request.timeout = cli_timeout
    if cli_verify_ssl is not None:
        profile.request.verify_ssl = cli_verify_ssl

    token = cli_token or os.environ.get(ENV_TOKEN)
    if not token and profile.token_source:
        token = resolve_credential(profile.token_source)
    return profile, token or None


# --- Credential sources ---


def _credential_from_env(var_name: str) -> str:
    if var_name not in os.environ:
        raise ConfigError(f"Environment variable '{var_name}' is not set")
    return os.environ[var_name]


def _credential_from_file(location: str) -> str:
    path = Path(location).expanduser()
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        raise ConfigError(f"Credential file not found: {path}") from None
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


def _credential_from_prompt() -> str:
    if not sys.stdin.isatty():
        raise ConfigError("Cannot prompt for a credential: stdin is not a TTY")
    return getpass.getpass("Credential: ")


def resolve_credential(source: str) -> str:
    """Turn a credential source into the credential itself.

    ``env:NAME`` reads an environment variable, ``file:PATH`` reads a file
    (surrounding whitespace stripped) and ``prompt`` asks on the terminal.
    Any other string is the credential.

    Raises:
        ConfigError: If the variable is unset, the file is unreadable, or
            there is no TTY to prompt on.
    """
    if source == "prompt":
        return _credential_from_prompt()
    scheme, sep, rest = source.partition(":")
    if sep and scheme == "env":
        return _credential_from_env(rest)
    if sep and scheme == "file":
        return _credential_from_file(rest)
    return source
