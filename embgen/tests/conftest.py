from pathlib import Path
import shutil

import pytest

from embgen.global_config import BuildEnv
from embgen.target import ChipFamily

ASSETS_DIR = Path(__file__).parent / "assets"

FAKE_HASH = "0123456789abcdef0123456789abcdef01234567"
FAKE_HASH_SHORT = "0123456"


def fake_revision(_cwd=None):
    return FAKE_HASH, FAKE_HASH_SHORT


@pytest.fixture
def workspace(tmp_path) -> Path:
    """
    Lays out a cargo workspace with the firmware crate two levels below
    the root, returns the crate (manifest) directory.
    """
    root = tmp_path / "workspace"
    manifest_dir = root / "runners" / "embedded"
    shutil.copytree(ASSETS_DIR / "ld", manifest_dir / "ld")
    shutil.copy(ASSETS_DIR / "cfg.toml", manifest_dir / "cfg.toml")
    shutil.copy(ASSETS_DIR / "Cargo.lock", root / "Cargo.lock")
    return manifest_dir


@pytest.fixture
def out_dir(tmp_path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def make_env(workspace, out_dir):
    def make(family: ChipFamily = ChipFamily.LPC55, target=None) -> BuildEnv:
        return BuildEnv(
            out_dir=out_dir,
            target=family.triplet if target is None else target,
            soc_lpc55=(family == ChipFamily.LPC55),
            soc_nrf52840=(family == ChipFamily.NRF52840),
            manifest_dir=workspace,
        )
    return make
