import csv
import io
from typing import Iterator, List, NamedTuple, Optional, Tuple

from bankinsight.errors import MALFORMED_ROW, ParseError
from bankinsight.functional import Either, Left, Right


class RawRecord(NamedTuple):
    line: int
    fields: List[str]


RecordStream = Iterator[Either[ParseError, RawRecord]]


def _is_blank(row: List[str]) -> bool:
    return not row or all(not cell.strip() for cell in row)


def iter_records(
    reader, expected_width: Optional[int]
) -> RecordStream:
    """Yield every record of `reader` as Right(RawRecord) or Left(ParseError).

    A tokenizer error or a width mismatch against the header only poisons the
    record it happened on.
    """
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            yield Left(ParseError(MALFORMED_ROW, f"Malformed row: {e}", reader.line_num))
            continue

        if _is_blank(row):
            continue

        if expected_width is not None and len(row) != expected_width:
            yield Left(ParseError(
                MALFORMED_ROW,
                f"Malformed row: expected {expected_width} fields, found {len(row)}",
                reader.line_num,
            ))
            continue

        yield Right(RawRecord(reader.line_num, row))


def read_csv(
    text: str, delimiter: str = ";", has_header: bool = True
) -> Tuple[Optional[List[str]], RecordStream]:
    """Tokenize `text` into (header, lazy record stream).

    The stream is single-pass; parsing again needs the original text.
    """
    reader = csv.reader(io.StringIO(text), delimiter=delimiter, strict=True)

    header: Optional[List[str]] = None
    if has_header:
        for row in reader:
            if not _is_blank(row):
                header = [cell.lstrip("\ufeff").strip() for cell in row]
                break

    width = len(header) if header is not None else None
    return header, iter_records(reader, width)
