from bankinsight.errors import MALFORMED_ROW
from bankinsight.reader import RawRecord, read_csv

HEADER = "Datum;Naam/Omschrijving;Bedrag"


def test_read_csv_splits_header_and_records():
    text = HEADER + "\n12-11-2024;Albert Heijn;12,34\n13-11-2024;Jumbo;5,00\n"
    header, records = read_csv(text, ";", True)

    assert header == ["Datum", "Naam/Omschrijving", "Bedrag"]
    rows = list(records)
    assert all(r.is_right() for r in rows)
    assert rows[0].get() == RawRecord(2, ["12-11-2024", "Albert Heijn", "12,34"])
    assert rows[1].get().line == 3


def test_read_csv_is_single_pass():
    text = HEADER + "\n12-11-2024;Albert Heijn;12,34\n"
    _, records = read_csv(text, ";", True)

    assert len(list(records)) == 1
    assert list(records) == []


def test_malformed_row_does_not_stop_parsing():
    text = HEADER + "\n12-11-2024;Albert Heijn\n13-11-2024;Jumbo;5,00\n"
    _, records = read_csv(text, ";", True)
    rows = list(records)

    assert len(rows) == 2
    assert rows[0].is_left()
    err = rows[0].get_error()
    assert err.kind == MALFORMED_ROW
    assert err.line == 2
    assert "expected 3 fields" in err.message
    assert rows[1].is_right()
    assert rows[1].get().fields[1] == "Jumbo"


def test_unparseable_quoting_does_not_stop_parsing():
    text = HEADER + '\n12-11-2024;"Albert" Heijn;12,34\n13-11-2024;Jumbo;5,00\n'
    _, records = read_csv(text, ";", True)
    rows = list(records)

    assert len(rows) == 2
    assert rows[0].is_left()
    err = rows[0].get_error()
    assert err.kind == MALFORMED_ROW
    assert err.line == 2
    assert rows[1].is_right()
    assert rows[1].get() == RawRecord(3, ["13-11-2024", "Jumbo", "5,00"])


def test_blank_lines_are_skipped():
    text = HEADER + "\n\n12-11-2024;Albert Heijn;12,34\n;;\n"
    _, records = read_csv(text, ";", True)
    rows = list(records)

    assert len(rows) == 1
    assert rows[0].get().line == 3


def test_headerless_records_have_no_width_check():
    text = "20241112,Salaris,2500\n20241113,Huur,-900,extra\n"
    header, records = read_csv(text, ",", False)
    rows = list(records)

    assert header is None
    assert [r.get().line for r in rows] == [1, 2]
    assert rows[1].get().fields[3] == "extra"


def test_header_bom_and_whitespace_are_stripped():
    text = "\ufeffDatum ; Bedrag\n12-11-2024;1,00\n"
    header, _ = read_csv(text, ";", True)
    assert header == ["Datum", "Bedrag"]


def test_quoted_delimiters_stay_in_one_field():
    text = HEADER + '\n12-11-2024;"Bakker; de";3,50\n'
    _, records = read_csv(text, ";", True)
    rows = list(records)
    assert rows[0].get().fields[1] == "Bakker; de"
