"""Tests for representative capture selection."""

import asyncio

from dcexport.catalog.captures import (
    collection_captures,
    is_representative,
    iter_collection_captures,
)
from dcexport.catalog.models import CaptureRecord, CollectionDescriptor


async def _collect(aiter):
    return [item async for item in aiter]


def test_is_representative():
    assert is_representative(CaptureRecord(uuid="a", sequence_marker="0000000001"))
    assert is_representative(CaptureRecord(uuid="a", sequence_marker="00004_0000000001"))
    assert not is_representative(CaptureRecord(uuid="a", sequence_marker="0000000002"))
    assert not is_representative(CaptureRecord(uuid="a", sequence_marker="00000000010"))
    assert not is_representative(CaptureRecord(uuid="a", sequence_marker=""))


def test_collection_captures_filters_and_stamps(fake_api, raw_capture):
    api = fake_api(captures={"C1": [
        raw_capture("A", sort_string="0000000001"),
        raw_capture("B", sort_string="0000000002"),
        raw_capture("C", sort_string="0000000001"),
    ]})

    captures = asyncio.run(_collect(
        collection_captures(api, CollectionDescriptor(uuid="C1", include=True))
    ))

    assert [c.uuid for c in captures] == ["A", "C"]
    assert all(c.collection_id == "C1" for c in captures)


def test_excluded_collections_are_never_listed(fake_api, raw_capture):
    api = fake_api(captures={
        "C1": [raw_capture("A")],
        "C2": [raw_capture("B")],
        "C3": [raw_capture("C")],
    })
    collections = [
        CollectionDescriptor(uuid="C1", include=True),
        CollectionDescriptor(uuid="C2", include=False),
        CollectionDescriptor(uuid="C3", include=True),
    ]

    captures = asyncio.run(_collect(iter_collection_captures(api, collections)))

    assert [(c.uuid, c.collection_id) for c in captures] == [("A", "C1"), ("C", "C3")]
    assert api.capture_calls == ["C1", "C3"]
