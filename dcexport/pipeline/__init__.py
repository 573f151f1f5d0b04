from dcexport.pipeline.runner import ExportSummary, export_rows, run_export
from dcexport.pipeline.sink import JsonLinesSink, open_sink, serialize_row
from dcexport.pipeline.worker import ordered_map

__all__ = [
    "ExportSummary",
    "JsonLinesSink",
    "export_rows",
    "open_sink",
    "ordered_map",
    "run_export",
    "serialize_row",
]
