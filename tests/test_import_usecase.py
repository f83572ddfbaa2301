from __future__ import annotations

import logging
from pathlib import Path

import pytest

from namestone_sync.config.config import Settings
from namestone_sync.domain.exceptions import BatchUploadFailed, ConfigError
from namestone_sync.domain.models import RunState
from namestone_sync.infra.artifacts.report_writer import createEmptyReport
from namestone_sync.infra.http.namestone_client import ApiError
from namestone_sync.infra.sources.csv_utils import CsvFileNotFoundError, CsvFormatError
from namestone_sync.usecases.import_usecase import ImportProfilesUseCase

logger = logging.getLogger("tests.import")

HEADER = "username,ethereumAddress,profile_name,description,avatar,profile_created\n"


class DummyApi:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def setNames(self, domain, names):
        self.calls.append((domain, list(names)))
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True


def _write_csv(path: Path, rows: int) -> str:
    lines = [HEADER]
    for i in range(rows):
        lines.append(f"user{i},0x{i},User {i},,ipfs://{i},\n")
    path.write_text("".join(lines), encoding="utf-8")
    return str(path)


def _settings(**overrides) -> Settings:
    base = dict(domain="example.eth", api_key="secret-key-1234567890", batch_delay_seconds=0.0)
    base.update(overrides)
    return Settings(**base)


def _usecase(api, sleeps=None) -> ImportProfilesUseCase:
    sleeps = sleeps if sleeps is not None else []
    return ImportProfilesUseCase(
        api_factory=lambda settings: api,
        sleep=sleeps.append,
        echo=lambda *args, **kwargs: None,
    )


def test_successful_import_fills_report(tmp_path: Path):
    csv_path = _write_csv(tmp_path / "p.csv", 120)
    api = DummyApi([{}, {"errors": [{"name": "user3", "message": "taken"}]}, {}])
    report = createEmptyReport("r1", "import", [])

    code = _usecase(api).run(csv_path, _settings(), False, logger, report, "r1")

    assert code == 0
    assert len(api.calls) == 3
    assert api.closed is True
    first = api.calls[0][1][0]
    assert first == {
        "name": "user0",
        "address": "0x0",
        "text_records": {"display.name": "User 0", "avatar": "ipfs://0"},
    }
    assert report.meta.state == RunState.SUCCEEDED.value
    assert report.summary.rows_total == 120
    assert report.summary.batches_total == 3
    assert report.summary.batches_completed == 3
    assert report.summary.items_rejected == 1
    assert report.items == [{"status": "REJECTED", "batch_index": 2, "name": "user3", "message": "taken"}]


def test_missing_config_fails_before_file_access(tmp_path: Path):
    api = DummyApi([])
    report = createEmptyReport("r1", "import", [])

    with pytest.raises(ConfigError) as exc:
        _usecase(api).run(str(tmp_path / "missing.csv"), _settings(api_key=None), False, logger, report, "r1")

    assert exc.value.missing == ["NAMESTONE_API_KEY"]
    assert report.meta.state == RunState.FAILED.value
    assert report.items[0]["error"]["category"] == "config"


def test_missing_file_fails(tmp_path: Path):
    report = createEmptyReport("r1", "import", [])

    with pytest.raises(CsvFileNotFoundError):
        _usecase(DummyApi([])).run(str(tmp_path / "missing.csv"), _settings(), False, logger, report, "r1")

    assert report.meta.state == RunState.FAILED.value


def test_parse_error_aborts_before_upload(tmp_path: Path):
    csv_path = tmp_path / "bad.csv"
    csv_path.write_text(HEADER + "alice,0x1,A,,,\nbob,0x2,B,,,,extra,cells\n", encoding="utf-8")
    api = DummyApi([{}])
    report = createEmptyReport("r1", "import", [])

    with pytest.raises(CsvFormatError):
        _usecase(api).run(str(csv_path), _settings(), False, logger, report, "r1")

    assert api.calls == []


def test_batch_failure_stops_remaining_batches(tmp_path: Path):
    csv_path = _write_csv(tmp_path / "p.csv", 150)
    api = DummyApi([{}, ApiError("HTTP 502", status_code=502), {}])
    report = createEmptyReport("r1", "import", [])

    with pytest.raises(BatchUploadFailed):
        _usecase(api).run(csv_path, _settings(), False, logger, report, "r1")

    assert len(api.calls) == 2
    assert api.closed is True
    assert report.summary.batches_completed == 1
    assert report.meta.state == RunState.FAILED.value


def test_dry_run_never_builds_client(tmp_path: Path):
    csv_path = _write_csv(tmp_path / "p.csv", 75)

    def factory(settings):
        raise AssertionError("client must not be created in dry run")

    usecase = ImportProfilesUseCase(api_factory=factory, sleep=lambda s: None, echo=lambda *a, **k: None)
    report = createEmptyReport("r1", "import", [])

    code = usecase.run(csv_path, _settings(), True, logger, report, "r1")

    assert code == 0
    assert report.meta.dry_run is True
    assert report.summary.batches_completed == 2


def test_configured_batch_size_and_delay_are_used(tmp_path: Path):
    csv_path = _write_csv(tmp_path / "p.csv", 5)
    api = DummyApi([{}, {}, {}])
    sleeps: list[float] = []

    _usecase(api, sleeps).run(csv_path, _settings(batch_size=2, batch_delay_seconds=0.25), False, logger, createEmptyReport("r1", "import", []), "r1")

    assert [len(names) for _, names in api.calls] == [2, 2, 1]
    assert sleeps == [0.25, 0.25]
