from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO
import logging
import sys
import tomllib

from embgen.global_config import BuildEnv, Config
from embgen.target import ChipFamily
from embgen.utils.exceptions import ArtifactReadError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class BuildDirectives:
    rerun_if_changed: List[str] = field(default_factory=list)
    link_search: List[str] = field(default_factory=list)
    link_args: List[str] = field(default_factory=list)

    @staticmethod
    def _add(lst: List[str], value):
        value = str(value)
        if value not in lst:
            lst.append(value)

    def rerun_on_change(self, path):
        __class__._add(self.rerun_if_changed, path)

    def add_link_search(self, path):
        __class__._add(self.link_search, path)

    def add_link_arg(self, arg):
        __class__._add(self.link_args, arg)

    def lines(self) -> List[str]:
        return [
            *[f"cargo:rerun-if-changed={x}" for x in self.rerun_if_changed],
            *[f"cargo:rustc-link-search={x}" for x in self.link_search],
            *[f"cargo:rustc-link-arg={x}" for x in self.link_args],
        ]

    def emit(self, stream: Optional[TextIO] = None):
        # resolved per call, stdout may be redirected after import.
        stream = sys.stdout if stream is None else stream
        for line in self.lines():
            print(line, file=stream)


def locked_version(lock_path: Path, package: str) -> Optional[str]:
    try:
        text = lock_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactReadError(lock_path, str(e)) from e
    try:
        lock = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"failed parsing lock file {lock_path}: {e}") from e

    packages = lock.get("package", [])
    if not isinstance(packages, list) or not all(isinstance(p, dict) for p in packages):
        raise ConfigurationError(f"malformed lock file {lock_path}: [[package]] entries expected")
    for p in packages:
        if p.get("name") == package:
            return p.get("version")
    return None


def runtime_link_arg(version: str) -> str:
    return f"-T{Config.runtime_crate}_{version}_link.x"


def add_link_configuration(directives: BuildDirectives, env: BuildEnv, family: ChipFamily):
    directives.add_link_search(env.manifest_dir / Config.ld_dir)
    directives.add_link_search(env.manifest_dir / family.ld_infix)

    version = locked_version(env.lock_path, Config.runtime_crate)
    if version is None:
        logger.warning(
            f"{Config.runtime_crate} not found in {env.lock_path}, no linker script argument added, "
            "the link may fail on a missing memory layout"
        )
        return
    logger.info(f"{Config.runtime_crate} locked at {version}")
    directives.add_link_arg(runtime_link_arg(version))
