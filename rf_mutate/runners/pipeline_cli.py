# rf_mutate/runners/pipeline_cli.py
import logging
import sys

import hydra
from omegaconf import DictConfig, OmegaConf

from rf_mutate.conf.config_schema import register_configs, validate_config
from rf_mutate.pipeline.errors import OracleInvocationError
from rf_mutate.runners.batch_runner import run_batch
from rf_mutate.utils.logging_utils import set_rf_mutate_logger_level

# Register the structured config schema with Hydra
register_configs()

logger = logging.getLogger("rf_mutate.runners.pipeline_cli")


@hydra.main(version_base=None, config_path="../conf", config_name="default")
def main(cfg: DictConfig) -> None:
    """Entry point of the `rf-mutate` command."""
    set_rf_mutate_logger_level(bool(cfg.get("debug_logging", False)))
    try:
        config = validate_config(cfg)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    logger.debug(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    try:
        success = run_batch(config)
    except (FileNotFoundError, FileExistsError, ValueError, OracleInvocationError) as e:
        logger.error(f"{e}")
        sys.exit(1)
    if not success:
        sys.exit(1)


if __name__ == "__main__":
    main()
