# rf_mutate/pipeline/folding/folder.py
"""
Folding oracle adapter.

`Folder` is the narrow interface the search depends on. `ViennaFolder` folds
and evaluates structures through the ViennaRNA Python bindings, and computes
Boltzmann pair probabilities by running the RNAfold executable in
partition-function mode and parsing its dot plot.
"""

import logging
import os
import re
import shutil
import subprocess
import tempfile
from typing import Optional, Protocol, Tuple

import RNA

from rf_mutate.pipeline.errors import OracleInvocationError
from rf_mutate.pipeline.folding.dotplot import PairProbabilities, parse_dotplot

logger = logging.getLogger("rf_mutate.pipeline.folding.folder")

_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


class Folder(Protocol):
    def fold(self, sequence: str) -> Tuple[str, float]:
        """Minimum free energy structure and its free energy."""
        ...

    def energy_of(self, sequence: str, structure: str) -> float:
        """Free energy of `sequence` folded into the given `structure`."""
        ...

    def pair_probabilities(self, sequence: str, tag: str = "sequence") -> Optional[PairProbabilities]:
        """Boltzmann pair probabilities, or None if they could not be computed."""
        ...


def _parse_version(text: str) -> Optional[Tuple[int, int]]:
    match = _VERSION_RE.search(text)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def check_rnafold_version(executable: str, min_version: str = "2.4") -> str:
    """
    Validate that the RNAfold executable runs and is recent enough.

    Args:
        executable: RNAfold path or name on PATH
        min_version: Minimum required "major.minor" version

    Returns:
        The version string reported by RNAfold

    Raises:
        OracleInvocationError: If RNAfold is missing, fails, or is too old
    """
    required = _parse_version(min_version)
    if required is None:
        raise ValueError(f"Invalid minimum RNAfold version: '{min_version}'")
    try:
        result = subprocess.run([executable, "--version"], capture_output=True, text=True, check=False)
    except OSError as e:
        raise OracleInvocationError(f"Unable to run RNAfold ({executable}): {e}") from e
    if result.returncode != 0:
        raise OracleInvocationError(
            f"RNAfold ({executable}) exited with status {result.returncode}: {result.stderr.strip()}"
        )
    reported = (result.stdout or result.stderr).strip()
    version = _parse_version(reported)
    if version is None:
        raise OracleInvocationError(f"Unable to determine RNAfold version from '{reported}'")
    if version < required:
        raise OracleInvocationError(
            f"RNAfold v{version[0]}.{version[1]} found, v{min_version} or greater is required"
        )
    logger.info(f"Using {reported} ({executable})")
    return reported


class ViennaFolder:
    """Folder backed by ViennaRNA (bindings for MFE/eval, RNAfold -p for dot plots)."""

    def __init__(
        self,
        rnafold: str = "RNAfold",
        temperature: float = 37.0,
        no_lonely_pairs: bool = False,
        scratch_dir: Optional[str] = None,
    ):
        self.rnafold = rnafold
        self.temperature = temperature
        self.no_lonely_pairs = no_lonely_pairs
        self.scratch_dir = scratch_dir

    def _fold_compound(self, sequence: str):
        md = RNA.md()
        md.temperature = self.temperature
        md.noLP = int(self.no_lonely_pairs)
        return RNA.fold_compound(sequence, md)

    def fold(self, sequence: str) -> Tuple[str, float]:
        structure, mfe = self._fold_compound(sequence).mfe()
        return structure, float(mfe)

    def energy_of(self, sequence: str, structure: str) -> float:
        return float(self._fold_compound(sequence).eval_structure(structure))

    def pair_probabilities(self, sequence: str, tag: str = "sequence") -> Optional[PairProbabilities]:
        # Scratch directory named after the tag keeps concurrent workers apart
        safe_tag = re.sub(r"[^A-Za-z0-9_.-]", "_", tag)
        workdir = tempfile.mkdtemp(prefix=f"rf_mutate_{safe_tag}_", dir=self.scratch_dir)
        try:
            fasta_path = os.path.join(workdir, f"{safe_tag}.fa")
            with open(fasta_path, "w") as f:
                f.write(f">{safe_tag}\n{sequence}\n")
            cmd = [self.rnafold, "-p", "--noPS", "-T", str(self.temperature)]
            if self.no_lonely_pairs:
                cmd.append("--noLP")
            cmd.extend(["-i", fasta_path])
            result = subprocess.run(cmd, capture_output=True, text=True, cwd=workdir, check=False)
            if result.returncode != 0:
                logger.warning(f"[{tag}] RNAfold -p failed ({result.returncode}): {result.stderr.strip()}")
                return None
            with open(os.path.join(workdir, f"{safe_tag}_dp.ps"), "r") as f:
                return parse_dotplot(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[{tag}] No pair probabilities available: {e}")
            return None
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
