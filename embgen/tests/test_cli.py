import pytest
from typer.testing import CliRunner

from embgen.cli.main import get_typer_cli

from .conftest import fake_revision

runner = CliRunner()

SOC_VARS = ["CARGO_FEATURE_SOC_LPC55", "CARGO_FEATURE_SOC_NRF52840"]


@pytest.fixture
def cargo_env(monkeypatch, workspace, out_dir):
    for var in SOC_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OUT_DIR", str(out_dir))
    monkeypatch.setenv("CARGO_MANIFEST_DIR", str(workspace))
    monkeypatch.setenv("TARGET", "thumbv7em-none-eabihf")
    monkeypatch.setenv("CARGO_FEATURE_SOC_NRF52840", "1")
    monkeypatch.setattr("embgen.generator.git_revision", fake_revision)


def test_generate_from_environment(cargo_env, workspace, out_dir):
    result = runner.invoke(get_typer_cli(), ["generate"])
    assert result.exit_code == 0, result.output
    assert "cargo:rerun-if-changed=cfg.toml" in result.stdout
    assert "cargo:rustc-link-arg=-Tcortex-m-rt_0.6.15_link.x" in result.stdout
    assert (out_dir / "build_constants.rs").exists()
    assert (workspace / "ld" / "nrf52" / "custom_memory.x").exists()


def test_generate_soc_override(cargo_env, workspace):
    result = runner.invoke(get_typer_cli(), [
        "generate", "--soc", "lpc55", "--target", "thumbv8m.main-none-eabi",
    ])
    assert result.exit_code == 0, result.output
    assert (workspace / "ld" / "lpc55" / "custom_memory.x").exists()
    assert not (workspace / "ld" / "nrf52").exists()


def test_generate_target_mismatch(cargo_env, out_dir):
    result = runner.invoke(get_typer_cli(), ["generate", "--target", "thumbv8m.main-none-eabi"])
    assert result.exit_code == 1
    assert "cargo:" not in result.stdout
    assert list(out_dir.iterdir()) == []


def test_generate_without_environment(monkeypatch):
    monkeypatch.delenv("OUT_DIR", raising=False)
    monkeypatch.delenv("TARGET", raising=False)
    monkeypatch.delenv("CARGO_MANIFEST_DIR", raising=False)
    result = runner.invoke(get_typer_cli(), ["generate"])
    assert result.exit_code == 1


def test_check_target(cargo_env):
    result = runner.invoke(get_typer_cli(), ["check-target"])
    assert result.exit_code == 0, result.output
    assert "NRF52840 thumbv7em-none-eabihf" in result.stdout


def test_check_target_both_socs(cargo_env, monkeypatch):
    monkeypatch.setenv("CARGO_FEATURE_SOC_LPC55", "1")
    result = runner.invoke(get_typer_cli(), ["check-target"])
    assert result.exit_code == 1


def test_show_config(workspace):
    result = runner.invoke(get_typer_cli(), ["show-config", "--manifest-dir", str(workspace)])
    assert result.exit_code == 0, result.output
    assert "0x0..0x70000 (448 KiB)" in result.stdout
    assert "0x70000..0x80000 (64 KiB)" in result.stdout
    assert "1209:beee" in result.stdout


def test_repeated_invocations(workspace):
    # the log handler must follow the stderr of each invocation.
    args = ["show-config", "--manifest-dir", str(workspace)]
    first = runner.invoke(get_typer_cli(), args)
    second = runner.invoke(get_typer_cli(), args)
    assert (first.exit_code, second.exit_code) == (0, 0), second.output
    assert second.stdout == first.stdout


def test_tests_run_passes_pytest_args(monkeypatch):
    received = []

    def fake_run_tests(args):
        received.append(args)
        return 0

    monkeypatch.setattr("embgen.cli.tests.run_tests", fake_run_tests)
    result = runner.invoke(get_typer_cli(), ["tests", "run", "--", "-k", "linker"])
    assert result.exit_code == 0, result.output
    [args] = received
    assert args[0].endswith("tests")
    assert args[1:] == ["-k", "linker"]


def test_tests_run_propagates_failure(monkeypatch):
    monkeypatch.setattr("embgen.cli.tests.run_tests", lambda args: 1)
    result = runner.invoke(get_typer_cli(), ["tests", "run"])
    assert result.exit_code == 1
