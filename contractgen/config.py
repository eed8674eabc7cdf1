"""Parser configuration.

TOML file naming the grammar's keywords and marker words, plus the debug
trace toggle:

    [parser]
    contract_keyword = "contract"
    alias_keyword = "using"
    required_marker = "required"
    default_marker = "default"
    debug = false
"""
from __future__ import annotations

import os
import sys
from dataclasses import asdict, dataclass, fields
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]

import tomli_w


CONFIG_FILENAME = "contractgen.toml"


class ConfigError(Exception):
    pass


@dataclass
class ParserConfig:
    contract_keyword: str = "contract"
    alias_keyword: str = "using"
    required_marker: str = "required"
    default_marker: str = "default"
    debug: bool = False

    def save(self, path: Path) -> None:
        data = {"parser": asdict(self)}
        path.write_bytes(tomli_w.dumps(data).encode())

    @classmethod
    def load(cls, path: Path) -> ParserConfig:
        config = cls()
        if not path.exists():
            return config
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}") from e

        section = data.get("parser", {})
        known = {f.name: type(getattr(config, f.name)) for f in fields(config)}
        for key, value in section.items():
            if key not in known:
                raise ConfigError(f"{path}: unknown key 'parser.{key}'")
            if not isinstance(value, known[key]):
                raise ConfigError(
                    f"{path}: 'parser.{key}' must be {known[key].__name__}, "
                    f"got {type(value).__name__}"
                )
            setattr(config, key, value)
        return config


def default_config_path() -> Path:
    return Path(os.environ.get("CONTRACTGEN_CONFIG", CONFIG_FILENAME))
