"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from celltree._nodes import Primitive, is_primitive


class ConfigError(Exception):
    """Error in celltree configuration."""


@dataclass(slots=True, frozen=True)
class CelltreeConfig:
    """Configuration loaded from the [tool.celltree] section of pyproject.toml.

    Attributes:
        case_insensitive: Mark the root scope case-insensitive for identifier lookup.
        bindings: Root scope value entries, in declaration order.
        project_root: Directory containing the pyproject.toml, if one was found.

    """

    case_insensitive: bool = False
    bindings: dict[str, Primitive] = field(default_factory=dict)
    project_root: Path | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _parse_bindings(value: object) -> dict[str, Primitive]:
    """Parse the bindings table.

    Raises:
        ConfigError: If the value is not a table of true/number/text values.

    """
    if not isinstance(value, dict):
        msg = "Invalid [tool.celltree].bindings: expected a table"
        raise ConfigError(msg)

    bindings: dict[str, Primitive] = {}
    for name, raw in cast("dict[str, object]", value).items():
        if not is_primitive(raw):
            msg = f"Invalid [tool.celltree].bindings.{name}: expected true, a number or text"
            raise ConfigError(msg)
        bindings[name] = raw
    return bindings


def load_config(pyproject_path: Path) -> CelltreeConfig:
    """Load and validate [tool.celltree] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed CelltreeConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    project_root = pyproject_path.parent

    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    section = data.get("tool", {}).get("celltree", {})
    if not section:
        return CelltreeConfig(project_root=project_root)

    case_insensitive = section.get("case_insensitive", False)
    if not isinstance(case_insensitive, bool):
        msg = "Invalid [tool.celltree].case_insensitive: expected boolean"
        raise ConfigError(msg)

    bindings: dict[str, Primitive] = {}
    if "bindings" in section:
        bindings = _parse_bindings(section["bindings"])

    return CelltreeConfig(
        case_insensitive=case_insensitive,
        bindings=bindings,
        project_root=project_root,
    )


def get_config() -> CelltreeConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        CelltreeConfig (may be empty if no pyproject.toml or no [tool.celltree] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return CelltreeConfig()
    return load_config(pyproject_path)
