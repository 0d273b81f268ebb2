"""Row-removal audit for the cleaning step."""

import logging
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass
class CleaningAudit:
    """Counts of rows removed by each cleaning rule.

    duplicate_ride_ids counts rows sharing a ride_id with another row.
    Those rows are reported, not removed.
    """

    input_rows: int = 0
    unparseable_timestamps: int = 0
    unknown_category: int = 0
    too_short: int = 0
    too_long: int = 0
    output_rows: int = 0
    duplicate_ride_ids: int = 0

    @property
    def rows_removed(self) -> int:
        """Total number of rows dropped."""
        return (
            self.unparseable_timestamps
            + self.unknown_category
            + self.too_short
            + self.too_long
        )

    def to_dict(self) -> dict[str, int]:
        """Counts as a plain dict, including rows_removed."""
        return {**asdict(self), "rows_removed": self.rows_removed}

    def log_summary(self) -> None:
        """Log the removal counts."""
        logger.info("Cleaning summary:")
        logger.info("  Input rows:              %s", f"{self.input_rows:,}")
        logger.info("  Unparseable timestamps:  %s", f"{self.unparseable_timestamps:,}")
        logger.info("  Unknown rider category:  %s", f"{self.unknown_category:,}")
        logger.info("  Shorter than minimum:    %s", f"{self.too_short:,}")
        logger.info("  At or above maximum:     %s", f"{self.too_long:,}")
        logger.info("  Output rows:             %s", f"{self.output_rows:,}")
        if self.duplicate_ride_ids:
            logger.warning(
                "  Rows with duplicate ride_id (kept): %s",
                f"{self.duplicate_ride_ids:,}",
            )
