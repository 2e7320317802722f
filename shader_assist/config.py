"""
Configuration for the shader watcher.

Settings are read from a ``shaderassist.ini`` file (``key=value`` lines,
``#`` comments) or, alternatively, from a YAML/JSON document with the
same keys.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "shaderassist.ini"

_TRUE_VALUES = {"true", "1", "yes", "on"}

# ini key -> dataclass field, where they differ
_INI_ALIASES = {
    "glsl_lang_validator_path": "glslang_validator_path",
    "glsl_c_path": "glslc_path",
}

_REQUIRED = ("shader_source_path", "spirv_output_path")


class ConfigError(ValueError):
    """Raised when the configuration cannot be loaded or is incomplete."""


def parse_bool(value: Any) -> bool:
    """Interpret an ini-style boolean. Anything unrecognized is False."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def parse_ini(text: str) -> Dict[str, str]:
    """
    Parse ``key=value`` lines into a dict.

    Blank lines, lines starting with ``#`` and lines without ``=``
    (such as ``[section]`` headers) are skipped. The value is everything
    after the first ``=``.
    """
    pairs: Dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            logger.debug(f"Ignoring config line {lineno}: {raw!r}")
            continue
        key, _, value = line.partition("=")
        pairs[key.strip()] = value.strip()
    return pairs


@dataclass
class ShaderAssistConfig:
    """
    Settings consumed by the watcher, detector and compile dispatcher.

    Attributes:
        shader_source_path: Directory polled for shader sources
        spirv_output_path: Directory receiving compiled SPIR-V
        compile_on_startup: Compile pre-existing shaders on the first scan
        use_google_spirv: Use glslc instead of glslangValidator
        generate_metadata: Emit spirv-cross reflection JSON next to each output
        glslang_validator_path: Path to the reference compiler
        glslc_path: Path to Google's compiler
        spirv_cross_path: Path to spirv-cross (metadata only)
        spirv_ext: Extension appended to compiled outputs
        vs_ext/fs_ext/gs_ext/cs_ext: Vertex/fragment/geometry/compute extensions
    """
    shader_source_path: str
    spirv_output_path: str
    compile_on_startup: bool = False
    use_google_spirv: bool = False
    generate_metadata: bool = False
    glslang_validator_path: str = "glslangValidator"
    glslc_path: str = "glslc"
    spirv_cross_path: str = "spirv-cross"
    spirv_ext: str = ".spv"
    vs_ext: str = ".vert"
    fs_ext: str = ".frag"
    gs_ext: str = ".geom"
    cs_ext: str = ".comp"

    @property
    def stage_extensions(self) -> Tuple[str, str, str, str]:
        """The four extensions eligible for compilation."""
        return (self.vs_ext, self.fs_ext, self.gs_ext, self.cs_ext)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShaderAssistConfig":
        """
        Build a config from raw key/value pairs.

        Accepts both the ini key names and the field names. Unknown keys
        are ignored; missing required keys raise ConfigError.
        """
        known = {f.name: f for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _INI_ALIASES.get(key, key)
            if name not in known or value is None:
                continue
            if known[name].type in ("bool", bool):
                values[name] = parse_bool(value)
            else:
                values[name] = str(value)

        missing: List[str] = [k for k in _REQUIRED if not values.get(k)]
        if missing:
            raise ConfigError(f"missing required setting(s): {', '.join(missing)}")
        return cls(**values)

    @classmethod
    def load(cls, path: str) -> "ShaderAssistConfig":
        """Load config from an ini, YAML or JSON file."""
        if not os.path.exists(path):
            raise ConfigError(f"config file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as e:
            raise ConfigError(f"failed to read {path}: {e}") from e

        try:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content) or {}
            elif path.endswith(".json"):
                data = json.loads(content)
            else:
                data = parse_ini(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"failed to parse {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of settings")

        config = cls.from_dict(data)
        logger.debug(f"Loaded config from {path}")
        return config

    def resolve_paths(self, base: str) -> "ShaderAssistConfig":
        """Return a copy with source/output directories made absolute against base."""
        root = Path(base)
        return replace(
            self,
            shader_source_path=str((root / self.shader_source_path).absolute()),
            spirv_output_path=str((root / self.spirv_output_path).absolute()),
        )
