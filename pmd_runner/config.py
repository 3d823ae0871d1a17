"""Configuration loading and validation.

Usage:
    config = load("pmd-config.yaml")         # raises ConfigError on bad config
    config.lib_dir                           # "dist/pmd/lib"
    generate_template("pmd-config.yaml")     # writes example file to disk
"""

import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from pmd_runner.launcher import DEFAULT_PMD_HOME
from pmd_runner.wrapper import Format, FormatError

DEFAULT_CONFIG_PATH = "pmd-config.yaml"
DEFAULT_PMD_VERSION = "6.22.0"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    pmd_home: str = DEFAULT_PMD_HOME
    pmd_version: str = DEFAULT_PMD_VERSION
    rules: str | None = None
    format: Format = Format.XML
    languages: list[str] = field(default_factory=lambda: ["apex"])

    @property
    def lib_dir(self) -> str:
        """Directory holding PMD's language jars."""
        return posixpath.join(self.pmd_home, "lib")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables PMD_HOME and PMD_VERSION override file values.

    Raises:
        ConfigError: if the file is missing, malformed, or holds invalid
                     values.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m pmd_runner init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    pmd = _section(raw, "pmd", config_path)
    defaults = _section(raw, "defaults", config_path)

    home    = os.environ.get("PMD_HOME")    or _value(pmd, "home",    DEFAULT_PMD_HOME)
    version = os.environ.get("PMD_VERSION") or _value(pmd, "version", DEFAULT_PMD_VERSION)

    try:
        fmt = Format.parse(_value(defaults, "format", Format.XML))
    except FormatError as exc:
        raise ConfigError(f"Invalid configuration: 'defaults.format': {exc}") from exc

    languages = defaults.get("languages") or ["apex"]
    if isinstance(languages, str):
        languages = [languages]
    if not isinstance(languages, list) or any(lang is None for lang in languages):
        raise ConfigError(
            "Invalid configuration: 'defaults.languages' must be a list of language names."
        )

    config = Config(
        pmd_home=str(home).strip(),
        pmd_version=str(version).strip(),
        rules=defaults.get("rules"),
        format=fmt,
        languages=[str(lang).strip() for lang in languages],
    )
    _validate(config)
    return config


def _section(raw: dict, name: str, config_path: str) -> dict:
    """Return the *name* mapping of the config, ``{}`` when absent or null."""
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Invalid configuration: '{name}' in '{config_path}' must be a mapping.")
    return section


def _value(section: dict, key: str, default):
    """Return *key* from *section*, falling back to *default* when absent or null."""
    value = section.get(key)
    return default if value is None else value


def _validate(config: Config) -> None:
    """Raise ConfigError if required fields are empty."""
    errors: list[str] = []

    if not config.pmd_home:
        errors.append("  - 'pmd.home' is empty (or set the PMD_HOME environment variable)")
    if not config.pmd_version:
        errors.append("  - 'pmd.version' is empty (or set the PMD_VERSION environment variable)")
    if not all(config.languages):
        errors.append("  - 'defaults.languages' contains an empty entry")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
pmd:
  home: "dist/pmd"          # PMD install dir, holds bin/ and lib/
  version: "6.22.0"         # Used to locate lib/pmd-<language>-<version>.jar

defaults:
  rules: "category/apex/style.xml"
  format: "xml"             # xml, csv or txt
  languages:
    - apex
    - java
"""


def generate_template(output_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a template pmd-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
