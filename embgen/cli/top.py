from pathlib import Path
from typing import Dict, Optional
import logging
import os

import typer

from embgen.config import load_config
from embgen.generator import run_generator
from embgen.global_config import BuildEnv, Config
from embgen.link_config import BuildDirectives
from embgen.target import ChipFamily, resolve_chip_family
from embgen.utils.common import to_kib
from embgen.utils.exceptions import GeneratorError
from embgen.utils.misc import get_color_logging_object

logger = logging.getLogger(__name__)

SOC_FEATURE_VARS = {
    ChipFamily.LPC55: "CARGO_FEATURE_SOC_LPC55",
    ChipFamily.NRF52840: "CARGO_FEATURE_SOC_NRF52840",
}


def build_env(
    out_dir: Optional[Path],
    target: Optional[str],
    soc: Optional[str],
    manifest_dir: Optional[Path],
) -> BuildEnv:
    environ: Dict[str, str] = dict(os.environ)
    if out_dir is not None:
        environ["OUT_DIR"] = str(out_dir)
    if target is not None:
        environ["TARGET"] = target
    if manifest_dir is not None:
        environ["CARGO_MANIFEST_DIR"] = str(manifest_dir)
    if soc is not None:
        for var in SOC_FEATURE_VARS.values():
            environ.pop(var, None)
        environ[SOC_FEATURE_VARS[ChipFamily.from_feature(soc)]] = "1"
    return BuildEnv.from_environ(environ)


def _fail(e: GeneratorError):
    logger.error(str(e))
    raise typer.Exit(code=1)


OutDirOption = typer.Option(None, "--out-dir", help="Overrides $OUT_DIR")
TargetOption = typer.Option(None, "--target", help="Overrides $TARGET")
SocOption = typer.Option(None, "--soc", help="Selects the SOC instead of $CARGO_FEATURE_SOC_*, e.g. lpc55 or nrf52840")
ManifestDirOption = typer.Option(None, "--manifest-dir", help="Overrides $CARGO_MANIFEST_DIR")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def generate(
    out_dir: Optional[Path] = OutDirOption,
    target: Optional[str] = TargetOption,
    soc: Optional[str] = SocOption,
    manifest_dir: Optional[Path] = ManifestDirOption,
    verbose: bool = VerboseOption,
):
    """Generate build constants and the memory linker script, print cargo directives."""
    get_color_logging_object(logging.DEBUG if verbose else logging.INFO)
    directives = BuildDirectives()
    try:
        env = build_env(out_dir, target, soc, manifest_dir)
        Config.sanity_check(env)
        run_generator(env, directives)
    except GeneratorError as e:
        _fail(e)
    directives.emit()


def check_target(
    target: Optional[str] = TargetOption,
    soc: Optional[str] = SocOption,
    verbose: bool = VerboseOption,
):
    """Resolve the chip family from the SOC feature and target triplet."""
    get_color_logging_object(logging.DEBUG if verbose else logging.INFO)
    try:
        env = build_env(Path("."), target, soc, Path("."))
        family = resolve_chip_family(env)
    except GeneratorError as e:
        _fail(e)
    typer.echo(f"{family.name} {family.triplet}")


def show_config(
    manifest_dir: Optional[Path] = ManifestDirOption,
    verbose: bool = VerboseOption,
):
    """Load, validate and print the build configuration without writing anything."""
    get_color_logging_object(logging.DEBUG if verbose else logging.INFO)
    if manifest_dir is None:
        manifest_dir = Path(os.environ.get("CARGO_MANIFEST_DIR", "."))
    try:
        config = load_config(manifest_dir / Config.config_file)
    except GeneratorError as e:
        _fail(e)
    p, i, b = config.parameters, config.identifier, config.build
    typer.echo(f"flash:      {hex(p.flash_origin)}..{hex(config.resolved_flash_end)} ({to_kib(config.flash_length)} KiB)")
    typer.echo(f"filesystem: {hex(p.filesystem_boundary)}..{hex(p.filesystem_end)} ({to_kib(config.filesystem_length)} KiB)")
    typer.echo(f"usb:        {i.usb_id_vendor:04x}:{i.usb_id_product:04x} {i.usb_manufacturer!r} {i.usb_product!r}")
    typer.echo(f"issuer:     {i.ccid_issuer!r}")
    typer.echo(f"build:      {b.build_profile} on {b.board}")
