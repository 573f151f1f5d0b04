"""End-to-end tests of the export pipeline with an in-memory API."""

import asyncio
import json

import pytest

from dcexport.catalog.models import CaptureRecord, CollectionDescriptor
from dcexport.enrichment.cache import MetadataCache
from dcexport.exceptions import CaptureFetchError, MetadataFetchError
from dcexport.pipeline.runner import export_rows, run_export


def _read_lines(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def _export(settings, collections, api, output):
    return asyncio.run(run_export(collections, "token", settings, output=output, client=api))


def test_single_representative_capture(settings, tmp_path, fake_api, raw_capture, bronx_mods):
    api = fake_api(
        captures={"C1": [
            raw_capture("X", sort_string="0000000001"),
            raw_capture("Y", sort_string="0000000002"),
        ]},
        mods={"X": bronx_mods, "Y": bronx_mods},
    )
    output = tmp_path / "export.ndjson"

    summary = _export(settings, [CollectionDescriptor(uuid="C1", include=True)], api, output)

    lines = _read_lines(output)
    assert len(lines) == 1
    assert lines[0]["id"] == "X"
    assert lines[0]["collection_id"] == "C1"
    assert lines[0]["data"]["url"] == "http://digitalcollections.nypl.org/items/X"
    assert len(lines[0]["data"]["image_urls"]) >= 1
    assert lines[0]["data"]["location"] == "Bronx, New York City, New York, United States"
    assert lines[0]["data"]["date"] == "1915"
    assert api.mods_calls == ["X"]
    assert summary.rows_written == 1


def test_excluded_collection_produces_no_rows(settings, tmp_path, fake_api, raw_capture):
    api = fake_api(captures={"C1": [raw_capture("A")], "C2": [raw_capture("B")]})
    collections = [
        CollectionDescriptor(uuid="C1", include=False),
        CollectionDescriptor(uuid="C2", include=True),
    ]
    output = tmp_path / "export.ndjson"

    _export(settings, collections, api, output)

    assert [line["collection_id"] for line in _read_lines(output)] == ["C2"]
    assert "C1" not in api.capture_calls


def test_rows_keep_source_order(settings, tmp_path, fake_api, raw_capture):
    api = fake_api(captures={
        "C1": [raw_capture("A"), raw_capture("B")],
        "C2": [raw_capture("C"), raw_capture("D", sort_string="0000000003"), raw_capture("E")],
    })
    collections = [
        CollectionDescriptor(uuid="C1", include=True),
        CollectionDescriptor(uuid="C2", include=True),
    ]
    output = tmp_path / "export.ndjson"

    _export(settings, collections, api, output)

    assert [line["id"] for line in _read_lines(output)] == ["A", "B", "C", "E"]


def test_rows_keep_source_order_with_concurrency(settings, tmp_path, fake_api, raw_capture):
    api = fake_api(captures={"C1": [raw_capture(str(i)) for i in range(12)]})
    output = tmp_path / "export.ndjson"

    _export(
        settings.model_copy(update={"concurrency": 4}),
        [CollectionDescriptor(uuid="C1", include=True)],
        api,
        output,
    )

    assert [line["id"] for line in _read_lines(output)] == [str(i) for i in range(12)]


def test_second_run_makes_no_metadata_fetches(settings, tmp_path, fake_api, raw_capture, bronx_mods):
    collections = [CollectionDescriptor(uuid="C1", include=True)]
    captures = {"C1": [raw_capture("X"), raw_capture("Z")]}

    first_api = fake_api(captures=captures, mods={"X": bronx_mods})
    _export(settings, collections, first_api, tmp_path / "first.ndjson")

    second_api = fake_api(captures=captures, mods={"X": bronx_mods})
    summary = _export(settings, collections, second_api, tmp_path / "second.ndjson")

    assert first_api.mods_calls == ["X", "Z"]
    assert second_api.mods_calls == []
    assert summary.cache_hits == 2
    assert summary.fetches == 0
    assert _read_lines(tmp_path / "first.ndjson") == _read_lines(tmp_path / "second.ndjson")


def test_missing_metadata_does_not_fail(settings, tmp_path, fake_api, raw_capture):
    api = fake_api(captures={"C1": [raw_capture("X")]}, mods={"X": {"titleInfo": {}}})
    output = tmp_path / "export.ndjson"

    _export(settings, [CollectionDescriptor(uuid="C1", include=True)], api, output)

    [line] = _read_lines(output)
    assert "location" not in line["data"]
    assert "date" not in line["data"]


def test_metadata_fetch_failure_aborts(settings, tmp_path, fake_api, raw_capture, bronx_mods):
    api = fake_api(
        captures={"C1": [raw_capture("A"), raw_capture("X"), raw_capture("B")]},
        mods={"A": bronx_mods, "B": bronx_mods},
        failing_mods={"X"},
    )
    output = tmp_path / "export.ndjson"

    with pytest.raises(MetadataFetchError):
        _export(settings, [CollectionDescriptor(uuid="C1", include=True)], api, output)

    assert [line["id"] for line in _read_lines(output)] == ["A"]
    assert "B" not in api.mods_calls


def test_capture_fetch_failure_aborts(settings, tmp_path, raw_capture):
    class FailingSource:
        async def iter_captures(self, collection_uuid):
            yield CaptureRecord.from_api(raw_capture("A"))
            raise CaptureFetchError.from_error(collection_uuid, 2, RuntimeError("HTTP 500"))

        async def fetch_mods(self, uuid):
            return None

    output = tmp_path / "export.ndjson"

    with pytest.raises(CaptureFetchError):
        _export(settings, [CollectionDescriptor(uuid="C1", include=True)], FailingSource(), output)

    assert [line["id"] for line in _read_lines(output)] == ["A"]


def test_cache_is_closed_after_failure(settings, tmp_path, fake_api, raw_capture, monkeypatch):
    closed = []
    original_close = MetadataCache.close

    def close(self):
        closed.append(self.db_path)
        original_close(self)

    monkeypatch.setattr(MetadataCache, "close", close)
    api = fake_api(captures={"C1": [raw_capture("X")]}, failing_mods={"X"})

    with pytest.raises(MetadataFetchError):
        _export(settings, [CollectionDescriptor(uuid="C1", include=True)], api, tmp_path / "o.ndjson")

    assert closed == [settings.cache_path]


def test_sink_failure_cancels_in_flight_enrichments(settings, fake_api, raw_capture):
    class FullDiskSink:
        rows_written = 0

        def write(self, row):
            raise OSError("No space left on device")

    class SlowEnricher:
        def __init__(self):
            self.cancelled = []

        async def enrich(self, row):
            if row.id != "A":
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    self.cancelled.append(row.id)
                    raise
            return row

    api = fake_api(captures={"C1": [raw_capture(uuid) for uuid in "ABCD"]})
    enricher = SlowEnricher()

    async def run():
        with pytest.raises(OSError):
            await export_rows(
                api,
                [CollectionDescriptor(uuid="C1", include=True)],
                enricher,
                FullDiskSink(),
                settings.model_copy(update={"concurrency": 4}),
            )
        # checked before the event loop gets a chance to finalize anything
        return sorted(enricher.cancelled)

    assert asyncio.run(run()) == ["B", "C", "D"]
