"""Pipeline execution module for running data processing steps."""

import inspect
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from pipeline.decoration import RESERVED_KWARGS
from pipeline.logger import setup_logging
from tripdata_canon.core.dataclass import CanonicalData

logger = logging.getLogger(__name__)


class Pipeline:
    """Class to run a data processing pipeline based on a configuration file.

    The YAML configuration lists steps in execution order:

        data_dir: data/divvy
        log_file: pipeline.log
        steps:
          - name: load_data
            params:
              sources:
                - "{{ data_dir }}/202401-divvy-tripdata.zip"
          - name: clean_trips
            validate_input: false

    Each step name must match a function passed in ``steps``. Step arguments
    named after canonical tables are taken from the pipeline's CanonicalData;
    all other arguments come from the step's ``params``.
    """

    data: CanonicalData
    steps: dict[str, Callable]

    def __init__(
        self,
        config_path: str | Path,
        steps: list[Callable] | None = None,
    ) -> None:
        """Initialize the Pipeline with configuration and step functions.

        Args:
            config_path: Path to the YAML configuration.
            steps: List of processing step functions.
        """
        self.config_path = config_path
        self.config = self._load_config()
        self.data = CanonicalData()
        self.steps = {func.__name__: func for func in steps or []}

        log_filename = self.config.get("log_file")
        if log_filename and not Path(log_filename).is_absolute():
            # Relative log paths live next to the config file
            log_filename = Path(self.config_path).parent / log_filename

        setup_logging(log_file=log_filename)
        if log_filename:
            logger.info("Log file: %s", log_filename)
        else:
            logger.info("Console-only logging enabled")

        self._check_steps()

    def _load_config(self) -> dict[str, Any]:
        """Load the pipeline configuration from a YAML file.

        Replaces template variables in the format {{ variable_name }} with
        their corresponding values defined at the top level of the config.

        Returns:
            The configuration dictionary.
        """
        with Path(self.config_path).open() as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config.get("steps"), list):
            msg = f"Config {self.config_path} must define a list of 'steps'"
            raise ValueError(msg)

        variables = {key: value for key, value in config.items() if isinstance(value, str)}

        def replace_templates(obj: Any) -> Any:  # noqa: ANN401
            if isinstance(obj, str):
                for var_name, var_value in variables.items():
                    obj = obj.replace(f"{{{{ {var_name} }}}}", str(var_value))
                return obj

            if isinstance(obj, dict):
                return {k: replace_templates(v) for k, v in obj.items()}

            if isinstance(obj, list):
                return [replace_templates(item) for item in obj]

            return obj

        return replace_templates(config)

    def _check_steps(self) -> None:
        """Log the configured step sequence and fail on unknown steps."""
        names = [step_cfg["name"] for step_cfg in self.config["steps"]]
        unknown = [name for name in names if name not in self.steps]
        if unknown:
            msg = (
                f"Steps {unknown} are configured but not provided. "
                f"Available steps: {', '.join(self.steps) or 'none'}"
            )
            raise ValueError(msg)

        lines = ["", "=" * 70, "Pipeline Steps", "=" * 70]
        for i, name in enumerate(names):
            lines.append(f"[{name}]")
            if i < len(names) - 1:
                lines.append("     ↓")
        lines.append("=" * 70)
        logger.info("\n".join(lines))

    def parse_step_args(self, step_name: str, step_obj: Callable) -> dict[str, Any]:
        """Separate the canonical data and parameters.

        If argument name matches a canonical table, it is passed from self.data.
        Else, it is taken from the step configuration "params".

        Args:
            step_name: Name of the step.
            step_obj: The step function.

        Raises:
            ValueError: If a required parameter is neither a canonical table
                nor present in the step's params.
        """
        step_args = inspect.signature(step_obj).parameters
        params = next(
            (s.get("params") or {} for s in self.config["steps"] if s["name"] == step_name),
            {},
        )
        expected = [x for x in step_args if x not in RESERVED_KWARGS]

        kwargs: dict[str, Any] = {}
        for arg_name, param in step_args.items():
            if arg_name in RESERVED_KWARGS:
                continue
            if arg_name in params:
                kwargs[arg_name] = params[arg_name]
            elif hasattr(self.data, arg_name) and not arg_name.startswith("_"):
                kwargs[arg_name] = getattr(self.data, arg_name)
            elif param.default is inspect.Parameter.empty:
                msg = (
                    f"Missing required parameter '{arg_name}' "
                    f"for step '{step_name}'. Function expects "
                    f""""{'", "'.join(expected)}"."""
                )
                raise ValueError(msg)

        unused = sorted(set(params) - set(step_args))
        if unused:
            logger.warning("Step '%s' ignores unknown params: %s", step_name, unused)

        return kwargs

    def run(self) -> CanonicalData:
        """Run every configured step in order and return the canonical data."""
        n_steps = len(self.config["steps"])
        start_time = time.time()

        for i, step_cfg in enumerate(self.config["steps"], start=1):
            step_name = step_cfg["name"]
            step_obj = self.steps[step_name]

            logger.info("")
            logger.info("=" * 70)
            logger.info("Step %d/%d: %s", i, n_steps, step_name)
            logger.info("=" * 70)

            kwargs = self.parse_step_args(step_name, step_obj)
            # Flags absent from the config fall back to the step's defaults
            for flag in ("validate_input", "validate_output"):
                if flag in step_cfg:
                    kwargs[flag] = step_cfg[flag]
            kwargs["canonical_data"] = self.data

            step_obj(**kwargs)

        logger.info("Pipeline completed in %.1fs.", time.time() - start_time)
        return self.data

    def get_data(self, table_name: str) -> Any:  # noqa: ANN401
        """Fetch a table (or the cleaning audit) produced by the last run.

        Raises:
            ValueError: If the table does not exist or has not been produced.
        """
        if table_name.startswith("_") or not hasattr(self.data, table_name):
            msg = (
                f"Unknown table '{table_name}'. "
                f"Available tables: {', '.join(CanonicalData.table_names())}"
            )
            raise ValueError(msg)

        data = getattr(self.data, table_name)
        if data is None:
            msg = f"Table '{table_name}' has not been produced. Run the pipeline first."
            raise ValueError(msg)
        return data
