from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple
import logging

from embgen.codegen.constants import ConstantsCodeGen
from embgen.codegen.vcs import git_revision
from embgen.config import BuildConfiguration, load_config
from embgen.global_config import BuildEnv, Config
from embgen.link_config import BuildDirectives, add_link_configuration
from embgen.target import ChipFamily, resolve_chip_family
from embgen.utils.linker import write_linker_script

logger = logging.getLogger(__name__)

RevisionProvider = Callable[[Optional[Path]], Tuple[str, str]]


@dataclass(frozen=True)
class GeneratedArtifacts:
    constants_path: Path
    linker_script_path: Path


def linker_script_path(env: BuildEnv, family: ChipFamily) -> Path:
    return env.manifest_dir / family.ld_infix / Config.linker_script_name


def load_build_configuration(env: BuildEnv, directives: BuildDirectives) -> BuildConfiguration:
    directives.rerun_on_change(Config.config_file)
    return load_config(env.config_path)


def run_generator(
    env: BuildEnv,
    directives: BuildDirectives,
    revision: Optional[RevisionProvider] = None,
) -> GeneratedArtifacts:
    family = resolve_chip_family(env)
    config = load_build_configuration(env, directives)

    hash_long, hash_short = (revision or git_revision)(env.manifest_dir)
    constants_path = env.out_dir / Config.constants_file_name
    ConstantsCodeGen(config, hash_long, hash_short).write(constants_path)

    directives.rerun_on_change(family.template)
    ld_path = linker_script_path(env, family)
    write_linker_script(ld_path, env.manifest_dir / family.template, config)

    add_link_configuration(directives, env, family)
    logger.info("ok, code generation done!")
    return GeneratedArtifacts(constants_path=constants_path, linker_script_path=ld_path)
