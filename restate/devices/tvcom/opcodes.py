"""Opcode table loading for the tvcom serial protocol.

The opcode document is a YAML list of command groups. Every command in a
group shares the group's data vocabulary:

    - keys:
        ka: power
      data:
        "00": "off"
        "01": "on"
        ff: status

The document is read with PyYAML's BaseLoader so codes such as ``00`` and
``01`` keep their leading zeros instead of being folded into integers.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from restate.core.errors import (
    NoCommandsDefined,
    OpcodeDocumentNotFound,
    OpcodeDocumentParseError,
)

logger = logging.getLogger(__name__)

DEFAULT_OPCODE_DOCUMENT = Path(__file__).parent / "device.yaml"


@dataclass(frozen=True)
class OpcodeDefinition:
    """A single wire command and the values it accepts.

    Attributes:
        code: Command code sent on the wire (e.g. 'ka')
        name: Human readable command name (e.g. 'power')
        data: Data code -> data name mapping shared with the command's group
        data_codes: Data codes in lexicographic order, fixed at construction
    """

    code: str
    name: str
    data: Mapping[str, str]
    data_codes: tuple[str, ...] = field(init=False)
    _codes_by_name: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        data = MappingProxyType(dict(self.data))
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "data_codes", tuple(sorted(data)))
        object.__setattr__(self, "_codes_by_name", MappingProxyType({v: k for k, v in data.items()}))

    def data_names(self) -> list[str]:
        """Data names ordered by their data code."""
        return [self.data[code] for code in self.data_codes]

    def data_name(self, code: str) -> str | None:
        return self.data.get(code)

    def data_code(self, name: str) -> str | None:
        return self._codes_by_name.get(name)


def load_opcodes(source: Path | str | None = None) -> tuple[OpcodeDefinition, ...]:
    """Load the opcode table from a YAML document.

    Args:
        source: Path to the document. Defaults to the bundled device.yaml.

    Returns:
        Opcode definitions in document order

    Raises:
        OpcodeDocumentNotFound: If the document does not exist
        OpcodeDocumentParseError: If the document is malformed
        NoCommandsDefined: If the document defines no commands
    """
    path = Path(source) if source is not None else DEFAULT_OPCODE_DOCUMENT

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise OpcodeDocumentNotFound(f"Opcode document not found: {path}") from e
    except OSError as e:
        raise OpcodeDocumentNotFound(f"Opcode document could not be read: {path}: {e}") from e

    try:
        document = yaml.load(text, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        raise OpcodeDocumentParseError(f"Opcode document is not valid YAML: {path}: {e}") from e

    opcodes = parse_opcodes(document, source=str(path))
    logger.debug(f"Loaded {len(opcodes)} opcodes from {path}")
    return opcodes


def parse_opcodes(document: Any, source: str = "<document>") -> tuple[OpcodeDefinition, ...]:
    """Build opcode definitions from an already parsed document.

    Args:
        document: Parsed YAML (list of {keys, data} groups)
        source: Document name used in error messages

    Returns:
        Opcode definitions in document order
    """
    if document is None:
        raise NoCommandsDefined(f"No opcodes present in {source}")

    if not isinstance(document, list):
        raise OpcodeDocumentParseError(
            f"Opcode document {source} must be a list of command groups, got {type(document).__name__}"
        )

    opcodes: list[OpcodeDefinition] = []
    seen_codes: set[str] = set()
    seen_names: set[str] = set()

    for index, group in enumerate(document):
        if not isinstance(group, dict):
            raise OpcodeDocumentParseError(f"Command group {index} in {source} is not a mapping")

        keys = _string_mapping(group.get("keys") or {}, f"group {index} keys", source)
        data = _string_mapping(group.get("data") or {}, f"group {index} data", source)

        names = list(data.values())
        if len(set(names)) != len(names):
            raise OpcodeDocumentParseError(f"Duplicate data names in group {index} of {source}")

        for code, name in keys.items():
            if code in seen_codes:
                raise OpcodeDocumentParseError(f"Command code '{code}' defined more than once in {source}")
            if name in seen_names:
                raise OpcodeDocumentParseError(f"Command name '{name}' defined more than once in {source}")
            seen_codes.add(code)
            seen_names.add(name)
            opcodes.append(OpcodeDefinition(code, name, data))

    if not opcodes:
        raise NoCommandsDefined(f"No opcodes present in {source}")

    return tuple(opcodes)


def command_names(opcodes: tuple[OpcodeDefinition, ...]) -> tuple[str, ...]:
    """Sorted command names for discovery responses."""
    return tuple(sorted(opcode.name for opcode in opcodes))


def _string_mapping(value: Any, label: str, source: str) -> dict[str, str]:
    if not isinstance(value, dict):
        raise OpcodeDocumentParseError(f"{label} in {source} must be a mapping")
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str) or not k or not v:
            raise OpcodeDocumentParseError(f"{label} in {source} must map non-empty strings to strings")
    return dict(value)
