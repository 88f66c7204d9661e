from diffreduce.core.filters.smart import (
    SmartDiffFilter,
    build_file_list,
    call_with_timeout,
    clean_json_output,
    parse_filter_result,
)

__all__ = [
    "SmartDiffFilter",
    "build_file_list",
    "call_with_timeout",
    "clean_json_output",
    "parse_filter_result",
]
