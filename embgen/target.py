from enum import Enum
from pathlib import Path
import logging

from embgen.global_config import BuildEnv
from embgen.utils.exceptions import TargetMismatchError

logger = logging.getLogger(__name__)


class ChipFamily(Enum):
    # name: (cargo feature, target triplet, linker script directory)
    LPC55 = ("soc-lpc55", "thumbv8m.main-none-eabi", "lpc55")
    NRF52840 = ("soc-nrf52840", "thumbv7em-none-eabihf", "nrf52")

    @property
    def feature(self) -> str:
        return self.value[0]

    @property
    def triplet(self) -> str:
        return self.value[1]

    @property
    def ld_infix(self) -> Path:
        return Path("ld", self.value[2])

    @property
    def template(self) -> Path:
        return Path("ld", f"{self.value[2]}-memory-template.x")

    @staticmethod
    def from_feature(feature: str) -> "ChipFamily":
        for family in ChipFamily:
            if feature in (family.feature, family.name.lower()):
                return family
        raise TargetMismatchError(f"Unknown SOC feature {feature!r}")


def resolve_chip_family(env: BuildEnv) -> ChipFamily:
    if env.soc_lpc55 and not env.soc_nrf52840:
        family = ChipFamily.LPC55
    elif env.soc_nrf52840 and not env.soc_lpc55:
        family = ChipFamily.NRF52840
    else:
        raise TargetMismatchError("Multiple or no SOC features set.")

    if env.target != family.triplet:
        raise TargetMismatchError(
            f"Wrong build triplet for {family.name}, expecting {family.triplet}, got {env.target}"
        )
    logger.info(f"building for {family.name} ({family.triplet})")
    return family
