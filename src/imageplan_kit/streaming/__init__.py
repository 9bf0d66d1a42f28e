from .json_array_parser import IncrementalJSONArrayParser, ScanState

__all__ = [
    "IncrementalJSONArrayParser",
    "ScanState",
]
