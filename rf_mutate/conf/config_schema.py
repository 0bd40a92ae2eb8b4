# rf_mutate/conf/config_schema.py

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from hydra.core.config_store import ConfigStore
from omegaconf import MISSING, OmegaConf


@dataclass
class InputConfig:
    """Input files."""
    structures: str = field(
        default=MISSING,
        metadata={"help": "Dot-bracket file, or directory of .db files, with the wild-type structures"}
    )
    motifs: str = field(
        default=MISSING,
        metadata={"help": "Motif file (transcript_id;motif[;motif...])"}
    )
    orfs: Optional[str] = field(
        default=None,
        metadata={"help": "ORF file (transcript_id;start[-end] or transcript_id;AA sequence)"}
    )
    targets: Optional[str] = field(
        default=None,
        metadata={"help": "Target structure file (transcript_id;motif_start;structure)"}
    )


@dataclass
class OrfConfig:
    """ORF detection and codon handling."""
    longest_orf: bool = field(
        default=False,
        metadata={"help": "Look for the longest ORF in transcripts without an explicit ORF"}
    )
    min_orf_length: int = field(
        default=50,
        metadata={"help": "Minimum length (in codons) of the longest ORF", "validate": lambda x: x > 0}
    )
    alt_start: bool = field(
        default=False,
        metadata={"help": "Accept alternative start codons of the genetic code"}
    )
    any_start: bool = field(
        default=False,
        metadata={"help": "Accept any sense codon as start codon"}
    )
    genetic_code: int = field(
        default=1,
        metadata={"help": "NCBI genetic code table id"}
    )
    exclude_codons: List[str] = field(
        default_factory=list,
        metadata={"help": "Codons (IUPAC patterns allowed) never used as synonymous substitutions"}
    )

    def __post_init__(self):
        if self.min_orf_length <= 0:
            raise ValueError(f"min_orf_length must be positive, got {self.min_orf_length}")
        if self.genetic_code <= 0:
            raise ValueError(f"genetic_code must be a positive table id, got {self.genetic_code}")


@dataclass
class SearchConfig:
    """Mutant design and rescue search."""
    n_mutations: int = field(
        default=1,
        metadata={"help": "Number of independent sites mutated simultaneously", "validate": lambda x: x >= 1}
    )
    min_distance: float = field(
        default=0.5,
        metadata={
            "help": "Minimum base-pair distance from the wild type, as a fraction of the motif length",
            "validate": lambda x: 0.0 < x <= 1.0
        }
    )
    tolerance: float = field(
        default=0.2,
        metadata={
            "help": "Maximum base-pair distance of a rescue from the wild type, as a fraction of the motif length",
            "validate": lambda x: 0.0 <= x <= 1.0
        }
    )
    max_dist_to_target: float = field(
        default=0.2,
        metadata={
            "help": "Maximum base-pair distance of a mutant from the target, as a fraction of the motif length",
            "validate": lambda x: 0.0 <= x <= 1.0
        }
    )
    max_iterations: int = field(
        default=1000,
        metadata={"help": "Maximum candidates tried per search phase", "validate": lambda x: x > 0}
    )
    max_evaluate: int = field(
        default=1000,
        metadata={"help": "Maximum candidates folded per search phase", "validate": lambda x: x > 0}
    )
    max_results: Optional[int] = field(
        default=None,
        metadata={"help": "Maximum results reported per motif (None = all)"}
    )
    no_rescue: bool = field(
        default=False,
        metadata={"help": "Skip the search for rescue mutations"}
    )
    no_ensemble_prob: bool = field(
        default=False,
        metadata={"help": "Skip Boltzmann pair probability scoring"}
    )
    seed: Optional[int] = field(
        default=None,
        metadata={"help": "Random seed for reproducible searches"}
    )

    def _validate_fractions(self):
        """Validate fraction ranges."""
        if not 0.0 < self.min_distance <= 1.0:
            raise ValueError(f"min_distance must be in (0, 1], got {self.min_distance}")
        if not 0.0 <= self.tolerance <= 1.0:
            raise ValueError(f"tolerance must be between 0 and 1, got {self.tolerance}")
        if not 0.0 <= self.max_dist_to_target <= 1.0:
            raise ValueError(f"max_dist_to_target must be between 0 and 1, got {self.max_dist_to_target}")

    def _validate_positive_integers(self):
        """Validate positive integer constraints."""
        if self.n_mutations < 1:
            raise ValueError(f"n_mutations must be at least 1, got {self.n_mutations}")
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.max_evaluate <= 0:
            raise ValueError(f"max_evaluate must be positive, got {self.max_evaluate}")
        if self.max_results is not None and self.max_results <= 0:
            raise ValueError(f"max_results must be positive, got {self.max_results}")

    def __post_init__(self):
        """Validate configuration after initialization by calling helper methods."""
        self._validate_fractions()
        self._validate_positive_integers()


@dataclass
class FoldingConfig:
    """ViennaRNA folding engine."""
    rnafold: str = field(
        default="RNAfold",
        metadata={"help": "Path to the RNAfold executable"}
    )
    min_version: str = field(
        default="2.4",
        metadata={"help": "Minimum required RNAfold version (major.minor)"}
    )
    temperature: float = field(
        default=37.0,
        metadata={"help": "Folding temperature in Celsius"}
    )
    no_lonely_pairs: bool = field(
        default=False,
        metadata={"help": "Disallow lonely base pairs"}
    )


@dataclass
class OutputConfig:
    output_dir: str = field(
        default="rf_mutate/",
        metadata={"help": "Output directory"}
    )
    overwrite: bool = field(
        default=False,
        metadata={"help": "Overwrite the output directory if it already exists"}
    )


@dataclass
class MutateConfig:
    """Root configuration of an rf-mutate run."""
    processors: int = field(
        default=1,
        metadata={"help": "Number of worker threads", "validate": lambda x: x >= 1}
    )
    debug_logging: bool = field(
        default=False,
        metadata={"help": "Enable debug logging"}
    )
    input: InputConfig = field(default_factory=InputConfig)
    orf: OrfConfig = field(default_factory=OrfConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    folding: FoldingConfig = field(default_factory=FoldingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def __post_init__(self):
        if self.processors < 1:
            raise ValueError(f"processors must be at least 1, got {self.processors}")


def register_configs() -> None:
    """Register the configuration schema with Hydra's config store."""
    cs = ConfigStore.instance()
    cs.store(name="rf_mutate_schema", node=MutateConfig)
    cs.store(group="search", name="schema", node=SearchConfig)
    cs.store(group="orf", name="schema", node=OrfConfig)
    cs.store(group="folding", name="schema", node=FoldingConfig)


def validate_config(cfg: Union[dict, Any]) -> MutateConfig:
    """
    Validate a configuration against the structured schema.

    OmegaConf checks types during the merge; converting the merged config to
    objects runs the dataclass range checks.

    Args:
        cfg: A dict, DictConfig or MutateConfig

    Returns:
        The validated MutateConfig instance

    Raises:
        ValueError: If the configuration is invalid or mandatory inputs are missing
    """
    if not OmegaConf.is_config(cfg):
        cfg = OmegaConf.structured(cfg) if isinstance(cfg, MutateConfig) else OmegaConf.create(cfg)
    try:
        merged = OmegaConf.merge(OmegaConf.structured(MutateConfig), cfg)
        missing = sorted(OmegaConf.missing_keys(merged))
        if missing:
            raise ValueError(f"Missing mandatory configuration value(s): {', '.join(missing)}")
        return OmegaConf.to_object(merged)
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
