from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import logging
import os

from embgen.utils.exceptions import ConfigurationError, EnvironmentConfigError

logger = logging.getLogger(__name__)


class Config:
    config_file = Path("cfg.toml")
    ld_dir = Path("ld")
    constants_file_name = "build_constants.rs"
    linker_script_name = "custom_memory.x"
    # lock file lives at the workspace root, two levels above the firmware crate.
    lock_file = Path("..", "..", "Cargo.lock")
    runtime_crate = "cortex-m-rt"

    @staticmethod
    def sanity_check(env: "BuildEnv"):
        for x in [env.manifest_dir, env.manifest_dir / __class__.config_file]:
            if x.exists():
                logger.debug(f"Config sanity check: OK, {x} exists..")
            else:
                raise ConfigurationError(f"Config sanity check failed: {x} does not exist!")
        logger.debug("Config sanity check passed!")


def _required(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if value is None:
        raise EnvironmentConfigError(name)
    return value


@dataclass(frozen=True)
class BuildEnv:
    out_dir: Path
    target: str
    soc_lpc55: bool
    soc_nrf52840: bool
    manifest_dir: Path

    @property
    def config_path(self) -> Path:
        return self.manifest_dir / Config.config_file

    @property
    def lock_path(self) -> Path:
        return self.manifest_dir / Config.lock_file

    @staticmethod
    def from_environ(environ: Optional[Mapping[str, str]] = None) -> "BuildEnv":
        environ = os.environ if environ is None else environ
        return BuildEnv(
            out_dir=Path(_required(environ, "OUT_DIR")),
            target=_required(environ, "TARGET"),
            # cargo only exports enabled features, the value is irrelevant.
            soc_lpc55="CARGO_FEATURE_SOC_LPC55" in environ,
            soc_nrf52840="CARGO_FEATURE_SOC_NRF52840" in environ,
            manifest_dir=Path(_required(environ, "CARGO_MANIFEST_DIR")),
        )
