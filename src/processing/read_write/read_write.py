"""Reads monthly trip sources and writes canonical tables."""

import logging
import tempfile
import zipfile
from collections.abc import Iterator
from pathlib import Path

import polars as pl

from pipeline.decoration import step
from processing.ingest.normalize import normalize_batches
from tripdata_canon.core.dataclass import CanonicalData

logger = logging.getLogger(__name__)


def _check_path(path: str | Path) -> Path:
    """Return the path, or raise showing where it stops existing."""
    p = Path(path)
    if p.exists():
        return p

    trace_path = p
    broke_at = p.name
    while not trace_path.exists() and trace_path != trace_path.parent:
        broke_at = trace_path.name
        trace_path = trace_path.parent
    msg = (
        f"Trip source does not exist at {path}. "
        f"Possibly broken at: {broke_at} in {trace_path}?"
    )
    raise FileNotFoundError(msg)


def _read_table(path: Path) -> pl.DataFrame:
    """Read one CSV or parquet file with every column as text."""
    if path.suffix == ".csv":
        return pl.read_csv(path, infer_schema=False)
    if path.suffix == ".parquet":
        return pl.read_parquet(path)
    msg = f"Unsupported file format for trip source: {path}"
    raise ValueError(msg)


def _archive_members(archive: zipfile.ZipFile) -> list[str]:
    """CSV members of an archive, skipping macOS resource forks."""
    return sorted(
        name
        for name in archive.namelist()
        if name.endswith(".csv") and not name.startswith("__MACOSX/")
    )


def read_trip_source(path: str | Path) -> pl.DataFrame:
    """Read a single trip source.

    ``.zip`` archives are extracted into a temporary directory that is
    removed before this function returns, whether or not reading succeeds.
    Every CSV inside the archive is read and stacked.

    Raises:
        FileNotFoundError: If the path does not exist
        ValueError: If the format is unsupported or an archive has no CSV
        zipfile.BadZipFile: If the archive is corrupt
    """
    p = _check_path(path)
    if p.suffix != ".zip":
        return _read_table(p)

    with tempfile.TemporaryDirectory(prefix="tripdata-") as tmp_dir:
        with zipfile.ZipFile(p) as archive:
            members = _archive_members(archive)
            if not members:
                msg = f"No CSV file found in archive {p}"
                raise ValueError(msg)
            for member in members:
                archive.extract(member, tmp_dir)

        logger.debug("Extracted %s to %s", members, tmp_dir)
        frames = [_read_table(Path(tmp_dir) / member) for member in members]

    return pl.concat(frames, how="diagonal") if len(frames) > 1 else frames[0]


def iter_trip_sources(sources: list[str]) -> Iterator[tuple[str, pl.DataFrame]]:
    """Yield (source name, table) one source at a time."""
    for i, source in enumerate(sources, start=1):
        logger.info("Loading trip source %d/%d: %s", i, len(sources), source)
        yield Path(source).name, read_trip_source(source)


@step()
def load_data(sources: list[str]) -> dict[str, pl.DataFrame]:
    """Load and normalize all monthly trip sources into raw_trips.

    Args:
        sources: Paths to monthly trip files (.zip, .csv or .parquet), in
            the order their rows should appear.
    """
    if isinstance(sources, str):
        sources = [sources]

    raw_trips = normalize_batches(iter_trip_sources(sources))
    logger.info(
        "Loaded %s trips from %d sources", f"{len(raw_trips):,}", len(sources)
    )
    return {"raw_trips": raw_trips}


@step()
def write_data(
    output_paths: dict[str, str],
    canonical_data: CanonicalData,
    create_dirs: bool = True,
) -> None:
    """Write canonical tables to .csv or .parquet output paths."""
    for table, path in output_paths.items():
        df = getattr(canonical_data, table, None)
        if not isinstance(df, pl.DataFrame):
            msg = f"Table '{table}' is not available to write"
            raise ValueError(msg)

        file_path = Path(path)
        if file_path.suffix not in {".csv", ".parquet"}:
            msg = f"Unsupported file format for table {table}: {path}"
            raise ValueError(msg)

        logger.info("Writing %s (%s rows) to %s", table, f"{len(df):,}", path)
        if create_dirs:
            file_path.parent.mkdir(parents=True, exist_ok=True)

        if file_path.suffix == ".csv":
            df.write_csv(file_path)
        else:
            df.write_parquet(file_path)

    logger.info("All data written successfully.")
