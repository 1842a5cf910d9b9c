from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional
import logging
import tomllib

from embgen.utils.common import U16_MAX, U32_MAX, is_block_aligned
from embgen.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _field(section: str, data: Dict[str, Any], name: str, kind: type, optional: bool = False):
    if name not in data:
        if optional:
            return None
        raise ConfigurationError(f"missing field '{name}' in [{section}]")
    value = data[name]
    # bool is an int subclass, TOML 'true' must not pass as an address.
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigurationError(
            f"field '{name}' in [{section}] must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _width_checked(section: str, name: str, value: Optional[int], max_value: int) -> Optional[int]:
    if value is not None and not 0 <= value <= max_value:
        raise ConfigurationError(
            f"field '{name}' in [{section}] out of range: {hex(value)} (max {hex(max_value)})"
        )
    return value


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if not isinstance(section, dict):
        raise ConfigurationError(f"missing section [{name}]")
    return section


@dataclass(frozen=True)
class Parameters:
    flash_origin: int
    flash_end: Optional[int]
    filesystem_boundary: int
    filesystem_end: int

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Parameters":
        values = {}
        for f in fields(Parameters):
            v = _field("parameters", data, f.name, int, optional=(f.name == "flash_end"))
            values[f.name] = _width_checked("parameters", f.name, v, U32_MAX)
        return Parameters(**values)


@dataclass(frozen=True)
class Identifier:
    usb_id_vendor: int
    usb_id_product: int
    usb_manufacturer: str
    usb_product: str
    ccid_issuer: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Identifier":
        s = "identifier"
        return Identifier(
            usb_id_vendor=_width_checked(s, "usb_id_vendor", _field(s, data, "usb_id_vendor", int), U16_MAX),
            usb_id_product=_width_checked(s, "usb_id_product", _field(s, data, "usb_id_product", int), U16_MAX),
            usb_manufacturer=_field(s, data, "usb_manufacturer", str),
            usb_product=_field(s, data, "usb_product", str),
            ccid_issuer=_field(s, data, "ccid_issuer", str),
        )


# Not interpreted by the generator, only required to be present.
@dataclass(frozen=True)
class Build:
    build_profile: str
    board: str

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Build":
        return Build(
            build_profile=_field("build", data, "build_profile", str),
            board=_field("build", data, "board", str),
        )


@dataclass(frozen=True)
class BuildConfiguration:
    parameters: Parameters
    identifier: Identifier
    build: Build

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "BuildConfiguration":
        return BuildConfiguration(
            parameters=Parameters.from_dict(_section(data, "parameters")),
            identifier=Identifier.from_dict(_section(data, "identifier")),
            build=Build.from_dict(_section(data, "build")),
        )

    @property
    def resolved_flash_end(self) -> int:
        p = self.parameters
        return p.filesystem_boundary if p.flash_end is None else p.flash_end

    @property
    def flash_length(self) -> int:
        return self.resolved_flash_end - self.parameters.flash_origin

    @property
    def filesystem_length(self) -> int:
        p = self.parameters
        return p.filesystem_end - p.filesystem_boundary

    def validate(self):
        """
        Checks all memory layout invariants up front, so that a broken
        configuration never leaves any generated artifact behind.
        """
        p = self.parameters
        if not is_block_aligned(p.filesystem_boundary):
            raise ConfigurationError(
                "filesystem boundary is not a multiple of the flash block size (1KB)"
            )
        if self.flash_length < 0:
            raise ConfigurationError(
                f"flash end {hex(self.resolved_flash_end)} lies below flash origin {hex(p.flash_origin)}"
            )
        if not is_block_aligned(self.flash_length):
            raise ConfigurationError("Flash length must be a multiple of 1024")
        if self.filesystem_length < 0:
            raise ConfigurationError(
                f"filesystem end {hex(p.filesystem_end)} lies below filesystem boundary {hex(p.filesystem_boundary)}"
            )
        if not is_block_aligned(self.filesystem_length):
            raise ConfigurationError("Filesystem length must be a multiple of 1024")


def parse_config(text: str) -> BuildConfiguration:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"failed parsing toml configuration: {e}") from e
    config = BuildConfiguration.from_dict(data)
    config.validate()
    return config


def load_config(path: Path) -> BuildConfiguration:
    logger.info(f"reading build configuration from {path}..")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"failed reading profile: {path} ({e})") from e
    config = parse_config(text)
    logger.debug(f"configuration: {config}")
    return config
