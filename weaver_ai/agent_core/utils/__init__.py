from .strings import PairSpan, find_first_pair

__all__ = ["PairSpan", "find_first_pair"]
