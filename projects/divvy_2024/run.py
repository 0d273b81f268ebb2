"""Runner script for the Divvy 2024 member/casual trip analysis."""

import argparse
import json
import logging
from pathlib import Path

from pipeline.pipeline import Pipeline
from processing import (
    aggregate_trips,
    clean_trips,
    final_check,
    load_data,
    summarize_riders,
    write_data,
)

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "config.yaml"

processing_steps = [
    load_data,
    clean_trips,
    aggregate_trips,
    summarize_riders,
    final_check,
    write_data,
]


# ---------------------------------------------------------------------
if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Divvy 2024 member vs casual trip analysis"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to the pipeline YAML config",
    )
    parser.add_argument(
        "--audit-json",
        type=Path,
        default=None,
        help="Also write the cleaning audit counts to this JSON file",
    )
    args = parser.parse_args()

    pipeline = Pipeline(config_path=args.config, steps=processing_steps)
    logger.info("Starting Divvy 2024 trip analysis")
    result = pipeline.run()

    if args.audit_json:
        args.audit_json.parent.mkdir(parents=True, exist_ok=True)
        args.audit_json.write_text(
            json.dumps(result.cleaning_audit.to_dict(), indent=2), encoding="utf-8"
        )
        logger.info("Cleaning audit written to %s", args.audit_json)

    logger.info("Pipeline finished successfully.")
