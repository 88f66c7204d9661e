from diffreduce.infra.diff.parser import parse_unified_diff

__all__ = ["parse_unified_diff"]
