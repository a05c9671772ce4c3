"""Uniform read/merge access to application configuration files.

Three on-disk formats are supported: YAML (``application.yml``), Java
properties (``application.properties``) and dotenv (``.env``). Every source
maps string keys to string values; ``add_properties`` merges new entries
without removing keys it was not given.

Writes go to a temporary file in the target directory which is then moved
over the original with ``os.replace``. A failed merge leaves the original
file untouched.
"""

from __future__ import annotations

import io
import os
import re
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from dotenv.parser import parse_stream

from okta_setup.exceptions import ClientConfigurationError
from okta_setup.utils.logger import get_logger

logger = get_logger(__name__)


class MutablePropertySource(ABC):
    """A single configuration file viewed as a flat key/value mapping."""

    encoding = "utf-8"

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    @property
    def location(self) -> Path:
        return self.path

    def exists(self) -> bool:
        return self.path.is_file()

    @abstractmethod
    def get_property(self, key: str) -> str | None:
        """Return the value stored for ``key`` or ``None``."""

    @abstractmethod
    def add_properties(self, properties: Mapping[str, str]) -> None:
        """Add or overwrite ``properties``, keeping every other entry."""

    def _read_text(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding=self.encoding)

    def _write_atomic(self, content: str) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding=self.encoding, newline="") as fh:
                fh.write(content)
            if self.path.exists():
                os.chmod(tmp_name, self.path.stat().st_mode & 0o777)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug(
            "Configuration file written",
            event="okta_setup.config.written",
            path=str(self.path),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.path)!r})"


# only CR and LF terminate a line
_LINE = re.compile(r"[^\r\n]*(?:\r\n|[\r\n])|[^\r\n]+\Z")


def _split_lines(text: str) -> list[str]:
    return _LINE.findall(text)


# ---------- YAML ----------


def _scalar_to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_mapping(data: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested mappings into dotted keys (``a: {b: 1}`` -> ``a.b``)."""
    flat: dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_mapping(value, full_key))
        elif value is not None and not isinstance(value, list):
            flat[full_key] = _scalar_to_str(value)
    return flat


def _set_nested(data: dict[str, Any], key: str, value: str) -> None:
    node = data
    remaining = key
    while True:
        # honour keys already written in dotted form at this level
        if remaining in node or "." not in remaining:
            node[remaining] = value
            return
        head, remaining = remaining.split(".", 1)
        child = node.get(head)
        if child is None:
            child = node[head] = {}
        elif not isinstance(child, dict):
            raise ClientConfigurationError(
                f"Cannot set '{key}': '{head}' already holds a non-mapping value",
                {"key": key},
            )
        node = child


class YamlPropertySource(MutablePropertySource):
    """``application.yml`` style file; dotted keys map onto nested mappings."""

    def _load(self) -> dict[str, Any]:
        text = self._read_text()
        if not text.strip():
            return {}
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ClientConfigurationError(
                f"Failed to parse YAML file {self.path}: {exc}", {"path": str(self.path)}
            ) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ClientConfigurationError(
                f"YAML file {self.path} does not contain a mapping",
                {"path": str(self.path)},
            )
        return data

    def get_property(self, key: str) -> str | None:
        return flatten_mapping(self._load()).get(key)

    def add_properties(self, properties: Mapping[str, str]) -> None:
        data = self._load()
        for key, value in properties.items():
            _set_nested(data, key, value)
        self._write_atomic(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
        )


# ---------- Java properties ----------

_PROPS_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape_properties(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt == "u" and re.fullmatch(r"[0-9a-fA-F]{4}", text[i + 2 : i + 6]):
                out.append(chr(int(text[i + 2 : i + 6], 16)))
                i += 6
                continue
            out.append(_PROPS_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    # recombine surrogate pairs; a lone surrogate is kept as is
    return (
        "".join(out)
        .encode("utf-16-le", "surrogatepass")
        .decode("utf-16-le", "surrogatepass")
    )


def _escape_properties(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for index, ch in enumerate(text):
        if ch == "\\":
            out.append("\\\\")
        elif ch in "\t\n\r\f":
            out.append("\\" + {"\t": "t", "\n": "n", "\r": "r", "\f": "f"}[ch])
        elif ch in "=:#!" and is_key:
            out.append("\\" + ch)
        elif ch == " " and (is_key or index == 0):
            out.append("\\ ")
        elif ord(ch) > 0xFFFF:
            # encoded as a UTF-16 surrogate pair
            code = ord(ch) - 0x10000
            high, low = 0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF)
            out.append(f"\\u{high:04x}\\u{low:04x}")
        elif ord(ch) > 0xFF:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def _ends_with_continuation(line: str) -> bool:
    stripped = line.rstrip("\r\n")
    trailing = len(stripped) - len(stripped.rstrip("\\"))
    return trailing % 2 == 1


def _split_key_value(logical: str) -> tuple[str, str]:
    i = 0
    length = len(logical)
    while i < length:
        ch = logical[i]
        if ch == "\\":
            i += 2
            continue
        if ch in "=: \t\f":
            break
        i += 1
    i = min(i, length)
    key = logical[:i]
    rest = logical[i:].lstrip(" \t\f")
    if rest[:1] in ("=", ":") and (i == length or logical[i] in " \t\f"):
        rest = rest[1:].lstrip(" \t\f")
    elif i < length and logical[i] in "=:":
        rest = logical[i + 1 :].lstrip(" \t\f")
    return _unescape_properties(key), _unescape_properties(rest)


def parse_properties(text: str) -> list[tuple[str | None, str, list[str]]]:
    """Split properties text into ``(key, value, raw_lines)`` entries.

    Comments and blank lines come back with ``key=None`` so the original layout
    can be written back unchanged.
    """
    entries: list[tuple[str | None, str, list[str]]] = []
    lines = _split_lines(text)
    i = 0
    while i < len(lines):
        raw = [lines[i]]
        stripped = lines[i].lstrip(" \t\f").rstrip("\r\n")
        if not stripped or stripped[0] in "#!":
            entries.append((None, "", raw))
            i += 1
            continue
        logical = stripped
        while _ends_with_continuation(logical) and i + 1 < len(lines):
            i += 1
            raw.append(lines[i])
            logical = logical[:-1] + lines[i].lstrip(" \t\f").rstrip("\r\n")
        if _ends_with_continuation(logical):
            logical = logical[:-1]
        key, value = _split_key_value(logical)
        entries.append((key, value, raw))
        i += 1
    return entries


class PropertiesFilePropertySource(MutablePropertySource):
    """``application.properties`` file. Comments and ordering survive merges."""

    encoding = "latin-1"

    def get_property(self, key: str) -> str | None:
        value = None
        for entry_key, entry_value, _ in parse_properties(self._read_text()):
            if entry_key == key:
                value = entry_value
        return value

    def add_properties(self, properties: Mapping[str, str]) -> None:
        entries = parse_properties(self._read_text())
        pending = dict(properties)
        out: list[str] = []
        for key, _, raw in entries:
            if key is not None and key in properties:
                if key in pending:
                    out.append(self._format_line(key, pending.pop(key)))
                # later duplicates of a replaced key are dropped
                continue
            out.extend(raw)
        if out and not out[-1].endswith(("\n", "\r")):
            out[-1] = out[-1] + "\n"
        out.extend(self._format_line(k, v) for k, v in pending.items())
        self._write_atomic("".join(out))

    @staticmethod
    def _format_line(key: str, value: str) -> str:
        return (
            f"{_escape_properties(key, is_key=True)}="
            f"{_escape_properties(value, is_key=False)}\n"
        )


# ---------- dotenv ----------

_SAFE_ENV_VALUE = re.compile(r"^[A-Za-z0-9_./:@%+,=\-]*$")


def to_env_key(key: str) -> str:
    """Convert a property key to environment style (``a.b-c`` -> ``A_B_C``)."""
    return re.sub(r"[.\-]", "_", key).upper()


def _quote_env_value(value: str) -> str:
    if _SAFE_ENV_VALUE.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def _leading_blank_lines(binding_text: str) -> str:
    """Blank lines the dotenv parser folds into the start of a binding."""
    stripped = binding_text.lstrip()
    whitespace = binding_text[: len(binding_text) - len(stripped)]
    cut = max(whitespace.rfind("\n"), whitespace.rfind("\r")) + 1
    return whitespace[:cut]


class EnvFilePropertySource(MutablePropertySource):
    """``.env`` file; keys are stored in environment variable form."""

    def get_property(self, key: str) -> str | None:
        if not self.path.exists():
            return None
        values = dotenv_values(self.path, interpolate=False, encoding=self.encoding)
        value = values.get(to_env_key(key))
        if value is None:
            value = values.get(key)
        return value

    def add_properties(self, properties: Mapping[str, str]) -> None:
        pending = {to_env_key(k): v for k, v in properties.items()}
        targets = set(pending)
        out: list[str] = []
        # bindings span every line of a multi-line quoted value
        for binding in parse_stream(io.StringIO(self._read_text())):
            text = binding.original.string
            env_key = to_env_key(binding.key) if binding.key is not None else None
            if env_key in targets:
                leading = _leading_blank_lines(text)
                if leading:
                    out.append(leading)
                if env_key in pending:
                    out.append(self._format_line(env_key, pending.pop(env_key)))
                continue
            out.append(text)
        if out and not out[-1].endswith(("\n", "\r")):
            out[-1] = out[-1] + "\n"
        out.extend(self._format_line(k, v) for k, v in pending.items())
        self._write_atomic("".join(out))

    @staticmethod
    def _format_line(env_key: str, value: str) -> str:
        return f"export {env_key}={_quote_env_value(value)}\n"
