from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Union
import logging

from embgen.config import BuildConfiguration
from embgen.utils.common import (
    CCID_ISSUER_LEN,
    GENERATED_BANNER_LINES,
    U8_MAX,
    U16_MAX,
    U32_MAX,
)
from embgen.utils.exceptions import ArtifactWriteError, ConfigurationError

logger = logging.getLogger(__name__)


class ConstType(Enum):
    STR = "&str"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    USIZE = "usize"
    ISSUER = f"[u8; {CCID_ISSUER_LEN}]"


_INT_LIMITS = {
    ConstType.U8: U8_MAX,
    ConstType.U16: U16_MAX,
    ConstType.U32: U32_MAX,
    ConstType.USIZE: U32_MAX,
}


def encode_issuer(issuer: str) -> bytes:
    raw = issuer.encode("utf-8")
    if len(raw) > CCID_ISSUER_LEN:
        logger.warning(
            f"ccid_issuer {issuer!r} is {len(raw)} bytes long, truncating to {CCID_ISSUER_LEN} bytes"
        )
        raw = raw[:CCID_ISSUER_LEN]
    return raw.ljust(CCID_ISSUER_LEN, b"\x00")


def _rust_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class Constant:
    name: str
    value: Union[str, int, bytes]
    const_type: ConstType

    def _render_value(self) -> str:
        t = self.const_type
        if t == ConstType.STR:
            return _rust_str(self.value)
        if t == ConstType.ISSUER:
            if len(self.value) != CCID_ISSUER_LEN:
                raise ConfigurationError(f"{self.name} must be exactly {CCID_ISSUER_LEN} bytes")
            return "[" + ", ".join(str(b) for b in self.value) + "]"
        if not 0 <= self.value <= _INT_LIMITS[t]:
            raise ConfigurationError(f"{self.name} = {self.value} does not fit in {t.value}")
        if t == ConstType.USIZE:
            return f"0x{self.value:x}"
        return str(self.value)

    def render(self) -> str:
        return f"pub const {self.name}: {self.const_type.value} = {self._render_value()};"


@dataclass(frozen=True)
class ConstantsCodeGen:
    config: BuildConfiguration
    git_hash: str
    git_hash_short: str
    module_name = "build_constants"

    def get_constants(self) -> List[Constant]:
        p, i = self.config.parameters, self.config.identifier
        return [
            Constant("CARGO_PKG_HASH", self.git_hash, ConstType.STR),
            Constant("CARGO_PKG_HASH_SHORT", self.git_hash_short, ConstType.STR),
            # USB Identifiers
            Constant("USB_MANUFACTURER", i.usb_manufacturer, ConstType.STR),
            Constant("USB_PRODUCT", i.usb_product, ConstType.STR),
            Constant("USB_ID_VENDOR", i.usb_id_vendor, ConstType.U16),
            Constant("USB_ID_PRODUCT", i.usb_id_product, ConstType.U16),
            Constant("CCID_ISSUER", encode_issuer(i.ccid_issuer), ConstType.ISSUER),
            # memory layout
            Constant("CONFIG_FILESYSTEM_BOUNDARY", p.filesystem_boundary, ConstType.USIZE),
            Constant("CONFIG_FILESYSTEM_END", p.filesystem_end, ConstType.USIZE),
            Constant("CONFIG_FLASH_BASE", p.flash_origin, ConstType.USIZE),
            Constant("CONFIG_FLASH_END", self.config.resolved_flash_end, ConstType.USIZE),
        ]

    def render(self) -> str:
        codelines = [f"// {line}" for line in GENERATED_BANNER_LINES]
        codelines.append(f"pub mod {__class__.module_name} {{")
        codelines.extend(f"    {c.render()}" for c in self.get_constants())
        codelines.append("}")
        return "\n".join(codelines) + "\n"

    def write(self, out_path: Path):
        content = self.render()
        logger.info(f"writing build constants to {out_path}..")
        try:
            out_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ArtifactWriteError(out_path, str(e)) from e
        logger.info(f"OK, build constants written to {out_path} file!")
