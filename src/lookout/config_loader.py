"""Load LookoutConfig from lookout.yaml / lookout.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from lookout._errors import ConfigError
from lookout.config import LookoutConfig

_CONFIG_NAMES = ("lookout.yaml", "lookout.yml", "lookout.toml")

_KNOWN_KEYS = frozenset({
    "root", "dest", "host", "port", "copy_all", "watch", "mirror",
    "strategy", "quiet_period_ms", "watch_step_ms", "reserved",
})


def load_config(root: Path | str | None = None, *, search_dir: Path | None = None,
                **overrides: object) -> LookoutConfig:
    """Build a LookoutConfig, optionally merging a config file.

    Looks for lookout.yaml, lookout.yml, or lookout.toml in *search_dir*
    (the working directory by default).  Overrides whose value is ``None``
    are treated as "not given" so argparse defaults never mask file values.

    Raises:
        ConfigError: If a config file exists but cannot be parsed.

    """
    file_config = _read_lookout_config(search_dir or Path.cwd())
    given = {k: v for k, v in overrides.items() if v is not None}
    merged = {**file_config, **given}
    if root is not None:
        merged["root"] = root

    for key in ("root", "dest"):
        if key in merged and not isinstance(merged[key], Path):
            merged[key] = Path(str(merged[key]))
    if isinstance(merged.get("reserved"), str):
        merged["reserved"] = (merged["reserved"],)
    elif "reserved" in merged and not isinstance(merged["reserved"], tuple):
        merged["reserved"] = tuple(str(name) for name in merged["reserved"])  # type: ignore[attr-defined]

    try:
        return LookoutConfig(**merged)  # type: ignore[arg-type]
    except TypeError as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc


def find_config_file(search_dir: Path) -> Path | None:
    """Return the first lookout config file in *search_dir*, if any."""
    for name in _CONFIG_NAMES:
        path = search_dir / name
        if path.is_file():
            return path
    return None


def _read_lookout_config(search_dir: Path) -> dict[str, object]:
    """Read lookout config from yaml/toml if present. Returns empty dict otherwise."""
    path = find_config_file(search_dir)
    if path is None:
        return {}
    if path.suffix == ".toml":
        return _parse_toml(path)
    return _parse_yaml(path)


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_lookout_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_lookout_section(data)


def _flatten_lookout_section(data: dict[str, object]) -> dict[str, object]:
    """Extract lookout.* keys and known top-level keys into one mapping."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "lookout" and k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("lookout")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result
