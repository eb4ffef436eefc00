"""Configuration loading with XDG paths, atomic writes, and precedence resolution.

This module turns the various places a user can put Dinlr settings into a
single :class:`~dinlr.models.ClientConfig`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.dinlr/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- one JSON document (``config.json``) holding the
  :class:`~dinlr.models.ClientConfig` fields.
* **Precedence resolution** -- :func:`load_config` merges explicit
  overrides, ``DINLR_*`` environment variables, the config file, and the
  model defaults.
* **Credential resolution** -- :func:`resolve_credential` lets the
  ``api_key`` field point at an environment variable or a file instead of
  holding the secret inline.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from dinlr.exceptions import ConfigError
from dinlr.models import ClientConfig

_APP_NAME = "dinlr"
_CONFIG_FILENAME = "config.json"

# Environment variable -> top-level ClientConfig field.
_ENV_FIELDS = {
    "DINLR_API_KEY": "api_key",
    "DINLR_API_URL": "api_url",
    "DINLR_RESTAURANT_ID": "restaurant_id",
    "DINLR_DEBUG": "debug",
}

_TRUTHY = {"1", "true", "yes", "on"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/dinlr/`` (default ``~/.config/dinlr/``).
    On macOS/Windows: ``~/.dinlr/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/dinlr/`` (default ``~/.local/share/dinlr/``).
    On macOS/Windows: ``~/.dinlr/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_config_path() -> Path:
    """Path of the user-wide ``config.json``."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives next to *path* so that ``os.replace`` is an
    atomic rename on POSIX. On any failure the temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read a JSON config file, returning ``{}`` when it does not exist."""
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


def _env_overrides() -> dict[str, Any]:
    """Collect ``DINLR_*`` environment variables into ClientConfig fields."""
    values: dict[str, Any] = {}
    for var, field in _ENV_FIELDS.items():
        raw = os.environ.get(var)
        if not raw:
            continue
        if field == "debug":
            values[field] = raw.strip().lower() in _TRUTHY
        else:
            values[field] = raw
    return values


def load_config(
    path: str | Path | None = None,
    overrides: Optional[dict[str, Any]] = None,
) -> ClientConfig:
    """Resolve the effective client configuration.

    Precedence (high to low):
        1. ``overrides`` (e.g. CLI flags)
        2. Environment variables (``DINLR_API_KEY``, ``DINLR_API_URL``,
           ``DINLR_RESTAURANT_ID``, ``DINLR_DEBUG``)
        3. Config file (*path*, or ``config.json`` in :func:`get_config_dir`)
        4. Model defaults

    The ``api_key`` value may be a credential source descriptor, see
    :func:`resolve_credential`.

    Raises:
        ConfigError: If an explicit *path* does not exist, the file is not
            valid JSON, or the merged values fail validation.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = default_config_path()

    data = _read_config_file(config_path)
    data.update(_env_overrides())
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    if "api_key" not in data:
        raise ConfigError(
            "No API key configured. Set DINLR_API_KEY or add api_key to "
            f"{config_path}"
        )
    data["api_key"] = resolve_credential(str(data["api_key"]))

    try:
        return ClientConfig.model_validate(data)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


def save_config(config: ClientConfig, path: str | Path | None = None) -> Path:
    """Persist *config* atomically and return the path written."""
    target = Path(path).expanduser() if path is not None else default_config_path()
    data = config.model_dump(mode="json")
    _atomic_write(target, json.dumps(data, indent=2) + "\n")
    return target


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else is taken as the literal credential

    Raises:
        ConfigError: If the referenced variable or file is missing.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source
