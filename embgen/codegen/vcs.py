from pathlib import Path
from subprocess import Popen, PIPE
from typing import Optional, Tuple
import logging

from embgen.utils.exceptions import ExternalToolError

logger = logging.getLogger(__name__)


def _git(args, cwd: Optional[Path]) -> str:
    cmd = ["git", *args]
    try:
        p = Popen(cmd, stdout=PIPE, stderr=PIPE, cwd=cwd)
    except OSError as e:
        raise ExternalToolError(f"could not run {' '.join(cmd)}: {e}") from e
    out, err = p.communicate()
    if p.returncode != 0:
        raise ExternalToolError(
            f"{' '.join(cmd)} failed with exit code {p.returncode}: {err.decode(errors='replace').strip()}"
        )
    try:
        return out.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise ExternalToolError(f"{' '.join(cmd)} returned non UTF-8 output") from e


def git_revision(cwd: Optional[Path] = None) -> Tuple[str, str]:
    """Returns (full, abbreviated) hash of the checked out commit."""
    hash_long = _git(["rev-parse", "HEAD"], cwd)
    hash_short = _git(["rev-parse", "--short", "HEAD"], cwd)
    logger.info(f"repository at {hash_long} ({hash_short})")
    return hash_long, hash_short
