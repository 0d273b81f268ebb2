"""Tests for trip source ingestion and table output."""

import tempfile
import zipfile
from datetime import datetime, timedelta

import polars as pl
import pytest

from processing.cleaning import clean_trip_table
from processing.ingest import TRIP_COLUMNS, normalize_batches, select_trip_columns
from processing.read_write import read_write
from processing.read_write.read_write import load_data, read_trip_source, write_data
from tests.fixtures import build_raw_trips, create_raw_trip
from tripdata_canon.core.dataclass import CanonicalData
from tripdata_canon.core.exceptions import DataValidationError

STATION_COLUMNS = {
    "rideable_type": "classic_bike",
    "start_station_name": "Clark St & Elm St",
    "start_lat": "41.90",
    "end_station_name": "",
}


def _month_batch(prefix: str, n: int = 3) -> pl.DataFrame:
    """A monthly file's worth of trips, including station columns."""
    return build_raw_trips(
        [create_raw_trip(f"{prefix}-{i}", **STATION_COLUMNS) for i in range(n)]
    )


def _write_zip(path, members: dict[str, pl.DataFrame]) -> None:
    with zipfile.ZipFile(path, "w") as archive:
        for name, df in members.items():
            archive.writestr(name, df.write_csv())


@pytest.fixture
def scratch_dir(tmp_path, monkeypatch):
    """Route temporary directories into a directory the test can inspect."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


class TestNormalizeBatches:
    """Test merging per-source batches into one raw trip table."""

    def test_keeps_only_trip_columns(self):
        trips = select_trip_columns("jan", _month_batch("jan"))
        assert trips.columns == TRIP_COLUMNS

    def test_concatenates_in_source_order(self):
        raw = normalize_batches([("jan", _month_batch("jan", 2)), ("feb", _month_batch("feb", 3))])

        assert raw.columns == TRIP_COLUMNS
        assert raw["ride_id"].to_list() == ["jan-0", "jan-1", "feb-0", "feb-1", "feb-2"]

    def test_does_not_filter_rows(self):
        bad = build_raw_trips(
            [create_raw_trip("neg", duration_minutes=-5, member_casual="unknown")]
        )
        assert len(normalize_batches([("bad", bad)])) == 1

    def test_missing_column_is_schema_mismatch(self):
        batch = _month_batch("mar").drop("member_casual")

        with pytest.raises(DataValidationError) as exc:
            normalize_batches([("jan", _month_batch("jan")), ("mar", batch)])
        assert exc.value.rule == "schema_mismatch"
        assert exc.value.table == "mar"
        assert exc.value.column == "member_casual"

    def test_mixed_timestamp_types_line_up(self):
        parsed = _month_batch("feb").with_columns(
            pl.col("started_at", "ended_at").str.to_datetime()
        )
        raw = normalize_batches([("jan", _month_batch("jan")), ("feb", parsed)])
        assert raw.schema["started_at"] == pl.Utf8
        assert len(raw) == 6

    def test_no_batches(self):
        raw = normalize_batches([])
        assert raw.columns == TRIP_COLUMNS
        assert len(raw) == 0


class TestReadTripSource:
    """Test reading single trip sources."""

    def test_read_csv_as_strings(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.csv"
        _month_batch("jan").write_csv(path)

        df = read_trip_source(path)
        assert len(df) == 3
        assert all(dtype == pl.Utf8 for dtype in df.schema.values())

    def test_read_parquet(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.parquet"
        _month_batch("jan").write_parquet(path)
        assert len(read_trip_source(path)) == 3

    def test_time_zone_aware_parquet_cleans(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.parquet"
        start = datetime(2024, 1, 1, 8, 0)
        pl.DataFrame(
            {
                "ride_id": ["tz-1", "tz-2"],
                "started_at": [start, start + timedelta(hours=1)],
                "ended_at": [
                    start + timedelta(minutes=12),
                    start + timedelta(hours=1, minutes=30),
                ],
                "member_casual": ["member", "casual"],
            }
        ).with_columns(
            pl.col("started_at", "ended_at").dt.replace_time_zone("UTC")
        ).write_parquet(path)

        raw = load_data(sources=[str(path)])["raw_trips"]
        trips, audit = clean_trip_table(raw)

        assert audit.unparseable_timestamps == 0
        assert trips["started_at"].to_list() == [start, start + timedelta(hours=1)]
        assert trips["ride_duration"].to_list() == [12.0, 30.0]
        assert trips["hour_of_day"].to_list() == [8, 9]

    def test_read_zip_and_clean_up(self, tmp_path, scratch_dir):
        path = tmp_path / "202401-divvy-tripdata.zip"
        _write_zip(path, {"202401-divvy-tripdata.csv": _month_batch("jan")})

        df = read_trip_source(path)

        assert df["ride_id"].to_list() == ["jan-0", "jan-1", "jan-2"]
        assert list(scratch_dir.iterdir()) == []

    def test_zip_skips_macos_metadata(self, tmp_path, scratch_dir):
        path = tmp_path / "202402-divvy-tripdata.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("202402-divvy-tripdata.csv", _month_batch("feb").write_csv())
            archive.writestr("__MACOSX/._202402-divvy-tripdata.csv", "\x00\x05binary")

        assert len(read_trip_source(path)) == 3

    def test_temp_dir_removed_when_read_fails(self, tmp_path, scratch_dir, monkeypatch):
        path = tmp_path / "202401-divvy-tripdata.zip"
        _write_zip(path, {"202401-divvy-tripdata.csv": _month_batch("jan")})

        def failing_read(_path):
            msg = "disk error"
            raise OSError(msg)

        monkeypatch.setattr(read_write, "_read_table", failing_read)

        with pytest.raises(OSError, match="disk error"):
            read_trip_source(path)
        assert list(scratch_dir.iterdir()) == []

    def test_zip_without_csv(self, tmp_path, scratch_dir):
        path = tmp_path / "empty.zip"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("README.txt", "no trips here")

        with pytest.raises(ValueError, match="No CSV file"):
            read_trip_source(path)
        assert list(scratch_dir.iterdir()) == []

    def test_corrupt_zip(self, tmp_path):
        path = tmp_path / "corrupt.zip"
        path.write_bytes(b"not a zip file")

        with pytest.raises(zipfile.BadZipFile):
            read_trip_source(path)

    def test_nonexistent_file_traces_broken_path(self, tmp_path):
        missing = tmp_path / "nonexistent_dir" / "subdir" / "202401.zip"
        with pytest.raises(FileNotFoundError, match="Possibly broken at: nonexistent_dir"):
            read_trip_source(missing)

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "trips.xlsx"
        path.write_text("dummy content")

        with pytest.raises(ValueError, match="Unsupported file format"):
            read_trip_source(path)


class TestLoadData:
    """Test the load_data step."""

    def test_loads_months_in_order(self, tmp_path, scratch_dir):
        jan = tmp_path / "202401-divvy-tripdata.zip"
        feb = tmp_path / "202402-divvy-tripdata.csv"
        _write_zip(jan, {"202401-divvy-tripdata.csv": _month_batch("jan", 2)})
        _month_batch("feb", 2).write_csv(feb)

        result = load_data(sources=[str(jan), str(feb)])

        raw = result["raw_trips"]
        assert raw.columns == TRIP_COLUMNS
        assert raw["ride_id"].to_list() == ["jan-0", "jan-1", "feb-0", "feb-1"]
        assert list(scratch_dir.iterdir()) == []

    def test_single_source_string(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.csv"
        _month_batch("jan").write_csv(path)

        assert len(load_data(sources=str(path))["raw_trips"]) == 3

    def test_schema_mismatch_aborts(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.csv"
        _month_batch("jan").drop("ride_id").write_csv(path)

        with pytest.raises(DataValidationError, match="schema_mismatch"):
            load_data(sources=[str(path)])

    def test_output_validation(self, tmp_path):
        path = tmp_path / "202401-divvy-tripdata.csv"
        _month_batch("jan").write_csv(path)

        result = load_data(sources=[str(path)], validate_output=True)
        assert len(result["raw_trips"]) == 3


class TestWriteData:
    """Test write_data function."""

    def test_write_csv_and_parquet(self, tmp_path):
        data = CanonicalData()
        data.rides_by_month = pl.DataFrame(
            {"month": ["Jan"], "member_casual": ["Member"], "ride_count": [3]}
        )
        data.raw_trips = _month_batch("jan").select(TRIP_COLUMNS)

        csv_path = tmp_path / "out" / "rides_by_month.csv"
        parquet_path = tmp_path / "out" / "raw_trips.parquet"
        write_data(
            output_paths={
                "rides_by_month": str(csv_path),
                "raw_trips": str(parquet_path),
            },
            canonical_data=data,
        )

        assert pl.read_csv(csv_path)["ride_count"].to_list() == [3]
        assert len(pl.read_parquet(parquet_path)) == 3

    def test_missing_table(self, tmp_path):
        with pytest.raises(ValueError, match="not available"):
            write_data(
                output_paths={"trips": str(tmp_path / "trips.csv")},
                canonical_data=CanonicalData(),
            )

    def test_unsupported_format(self, tmp_path):
        data = CanonicalData(trips=pl.DataFrame({"ride_id": ["A1"]}))
        with pytest.raises(ValueError, match="Unsupported file format"):
            write_data(
                output_paths={"trips": str(tmp_path / "trips.xlsx")},
                canonical_data=data,
            )

    def test_no_create_dirs(self, tmp_path):
        data = CanonicalData(trips=pl.DataFrame({"ride_id": ["A1"]}))
        with pytest.raises(OSError):  # noqa: PT011
            write_data(
                output_paths={"trips": str(tmp_path / "missing" / "trips.csv")},
                canonical_data=data,
                create_dirs=False,
            )
