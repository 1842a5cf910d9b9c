from pathlib import Path
from typing import Dict
import logging
import re

from embgen.config import BuildConfiguration
from embgen.utils.common import GENERATED_BANNER_LINES, is_block_aligned, to_kib
from embgen.utils.exceptions import (
    ArtifactReadError,
    ArtifactWriteError,
    ConfigurationError,
    TemplateError,
)

logger = logging.getLogger(__name__)

FLASH_LENGTH = "##FLASH_LENGTH##"
FS_LENGTH = "##FS_LENGTH##"
FS_BASE = "##FS_BASE##"
FLASH_BASE = "##FLASH_BASE##"

PLACEHOLDER_RE = re.compile(r"##[A-Z0-9_]+##")

linker_script_banner = "".join(f"/* {line} */\n" for line in GENERATED_BANNER_LINES)


def memory_substitutions(config: BuildConfiguration) -> Dict[str, str]:
    flash_len = config.flash_length
    if not is_block_aligned(flash_len):
        raise ConfigurationError("Flash length must be a multiple of 1024")
    fs_len = config.filesystem_length
    if not is_block_aligned(fs_len):
        raise ConfigurationError("Filesystem length must be a multiple of 1024")
    return {
        FLASH_LENGTH: str(to_kib(flash_len)),
        FS_LENGTH: str(to_kib(fs_len)),
        FS_BASE: f"{config.parameters.filesystem_boundary:x}",
        FLASH_BASE: f"{config.parameters.flash_origin:x}",
    }


def render_memory_template(template: str, substitutions: Dict[str, str]) -> str:
    missing = [k for k in substitutions if k not in template]
    if missing:
        raise TemplateError(f"memory template lacks placeholder(s): {', '.join(missing)}")
    for placeholder, value in substitutions.items():
        template = template.replace(placeholder, value)
    unresolved = sorted(set(PLACEHOLDER_RE.findall(template)))
    if unresolved:
        raise TemplateError(f"unresolved placeholder(s) in memory template: {', '.join(unresolved)}")
    return template


def write_linker_script(out_path: Path, template_path: Path, config: BuildConfiguration):
    logger.info(f"writing linker script to {out_path}, template: {template_path}..")
    try:
        template = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(template_path, f"cannot read memory.x template file ({e})") from e

    try:
        linker_script_content = render_memory_template(template, memory_substitutions(config))
    except TemplateError as e:
        raise TemplateError(f"{template_path}: {e}") from e

    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(linker_script_banner + linker_script_content, encoding="utf-8")
    except OSError as e:
        raise ArtifactWriteError(out_path, str(e)) from e
    logger.info(f"OK, linker script written to {out_path} file!")
