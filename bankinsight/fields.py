from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


class FieldResolver:
    """Maps semantic fields (date, amount, ...) to values of a raw record.

    Built either from a header row plus header-name synonyms, or from a fixed
    column mapping when the export has no header.
    """

    def __init__(
        self,
        columns: Dict[int, str],
        synonyms: Mapping[str, Sequence[str]],
        mapping: Optional[Mapping[str, int]] = None,
    ):
        self.columns = columns
        self.synonyms = synonyms
        self.mapping = mapping or {}
        self._by_name: Dict[str, int] = {}
        for idx, name in columns.items():
            # first column wins when a header name repeats
            self._by_name.setdefault(name.strip().lower(), idx)

    @classmethod
    def from_header(
        cls, header: Sequence[str], synonyms: Iterable[Tuple[str, Sequence[str]]]
    ) -> "FieldResolver":
        return cls({i: h.strip() for i, h in enumerate(header)}, dict(synonyms))

    @classmethod
    def from_mapping(cls, mapping: Iterable[Tuple[str, int]]) -> "FieldResolver":
        return cls({}, {}, dict(mapping))

    def index_of(self, field: str) -> Optional[int]:
        if field in self.mapping:
            return self.mapping[field]
        for name in self.synonyms.get(field, ()):
            idx = self._by_name.get(name.strip().lower())
            if idx is not None:
                return idx
        return None

    def value(self, record: Sequence[str], field: str) -> str:
        idx = self.index_of(field)
        if idx is None or idx < 0 or idx >= len(record):
            return ""
        return record[idx].strip()

    def has(self, field: str) -> bool:
        return self.index_of(field) is not None


def validate_structure(header: Optional[Sequence[str]], required: Iterable[str]) -> bool:
    """True when every required header is present (exact match after trimming)."""
    if header is None:
        return False
    present = {h.strip() for h in header}
    return all(name in present for name in required)


def missing_headers(header: Sequence[str], required: Iterable[str]) -> List[str]:
    present = {h.strip() for h in header}
    return [name for name in required if name not in present]
