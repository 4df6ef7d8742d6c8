"""Load MewConfig from mew.yaml or mew.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path

from mew._errors import ConfigError
from mew.config import MewConfig

_CONFIG_NAMES = ("mew.yaml", "mew.yml", "mew.toml")

# Every MewConfig field except root, which always comes from the caller
_KNOWN_KEYS = frozenset(f.name for f in dataclasses.fields(MewConfig)) - {"root"}


def load_config(root: Path, **overrides: object) -> MewConfig:
    """Load MewConfig from root, optionally merging mew.yaml / mew.toml.

    Overrides whose value is None are ignored so CLI flags left unset do not
    mask file values.

    Raises:
        ConfigError: If the config file is malformed or names unknown keys.

    """
    file_config = _read_mew_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}

    unknown = sorted(set(merged) - _KNOWN_KEYS)
    if unknown:
        msg = f"Unknown config key(s): {', '.join(unknown)}"
        raise ConfigError(msg)

    if "output" in merged and not isinstance(merged["output"], Path):
        merged["output"] = Path(str(merged["output"]))
    return MewConfig(root=root, **merged)


def find_config_file(root: Path) -> Path | None:
    """Return the first config file present in root, or None."""
    for name in _CONFIG_NAMES:
        path = root / name
        if path.is_file():
            return path
    return None


def _read_mew_config(root: Path) -> dict[str, object]:
    path = find_config_file(root)
    if path is None:
        return {}
    if path.suffix == ".toml":
        return _parse_toml(path)
    return _parse_yaml(path)


def _parse_yaml(path: Path) -> dict[str, object]:
    import yaml

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_mew_section(data, path)


def _parse_toml(path: Path) -> dict[str, object]:
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path.name}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_mew_section(data, path)


def _flatten_mew_section(data: object, path: Path) -> dict[str, object]:
    """Merge a ``mew`` section with top-level keys (section wins)."""
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping at the top level"
        raise ConfigError(msg)

    result: dict[str, object] = {k: v for k, v in data.items() if k != "mew"}
    section = data.get("mew")
    if section is not None:
        if not isinstance(section, dict):
            msg = f"{path.name}: 'mew' section must be a mapping"
            raise ConfigError(msg)
        result.update(section)
    return result
