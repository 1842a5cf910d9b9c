import pytest

from embgen.generator import run_generator
from embgen.link_config import BuildDirectives
from embgen.target import ChipFamily
from embgen.utils.exceptions import ConfigurationError, ExternalToolError, TargetMismatchError

from .conftest import FAKE_HASH, fake_revision


@pytest.mark.parametrize("family", list(ChipFamily))
def test_generate(make_env, workspace, out_dir, family):
    directives = BuildDirectives()
    artifacts = run_generator(make_env(family), directives, revision=fake_revision)

    assert artifacts.constants_path == out_dir / "build_constants.rs"
    assert artifacts.linker_script_path == workspace / family.ld_infix / "custom_memory.x"
    assert FAKE_HASH in artifacts.constants_path.read_text()
    assert "LENGTH = 448K" in artifacts.linker_script_path.read_text()

    assert directives.lines() == [
        "cargo:rerun-if-changed=cfg.toml",
        f"cargo:rerun-if-changed={family.template}",
        f"cargo:rustc-link-search={workspace / 'ld'}",
        f"cargo:rustc-link-search={workspace / family.ld_infix}",
        "cargo:rustc-link-arg=-Tcortex-m-rt_0.6.15_link.x",
    ]


def test_generate_is_deterministic(make_env):
    first = run_generator(make_env(), BuildDirectives(), revision=fake_revision)
    constants, linker_script = first.constants_path.read_bytes(), first.linker_script_path.read_bytes()

    second = run_generator(make_env(), BuildDirectives(), revision=fake_revision)
    assert second.constants_path.read_bytes() == constants
    assert second.linker_script_path.read_bytes() == linker_script


@pytest.mark.parametrize("parameters", [
    # misaligned filesystem boundary
    "flash_origin = 0x0\nflash_end = 0x7_0000\nfilesystem_boundary = 0x7_0100\nfilesystem_end = 0x8_0100",
    # flash length not a multiple of 1024
    "flash_origin = 0x200\nfilesystem_boundary = 0x7_0000\nfilesystem_end = 0x8_0000",
    # filesystem length not a multiple of 1024
    "flash_origin = 0x0\nfilesystem_boundary = 0x7_0000\nfilesystem_end = 0x8_0001",
])
def test_misaligned_layout_writes_nothing(make_env, workspace, out_dir, parameters):
    cfg = workspace / "cfg.toml"
    text = cfg.read_text()
    head, _, rest = text.partition("[identifier]")
    cfg.write_text(f"[parameters]\n{parameters}\n\n[identifier]{rest}")

    with pytest.raises(ConfigurationError):
        run_generator(make_env(), BuildDirectives(), revision=fake_revision)
    assert list(out_dir.iterdir()) == []
    assert not (workspace / "ld" / "lpc55").exists()


def test_target_mismatch_writes_nothing(make_env, workspace, out_dir):
    env = make_env(ChipFamily.LPC55, target="thumbv7em-none-eabihf")
    with pytest.raises(TargetMismatchError):
        run_generator(env, BuildDirectives(), revision=fake_revision)
    assert list(out_dir.iterdir()) == []


def test_revision_failure_is_fatal(make_env, out_dir):
    def broken_revision(_cwd=None):
        raise ExternalToolError("git rev-parse HEAD failed with exit code 128")

    with pytest.raises(ExternalToolError):
        run_generator(make_env(), BuildDirectives(), revision=broken_revision)
    assert not (out_dir / "build_constants.rs").exists()
