from decimal import Decimal

import pytest

from bankinsight.config import DIALECTS, ImportConfig
from bankinsight.domain import CREDIT, DEBIT
from bankinsight.errors import IoFailure
from bankinsight.importer import (
    EMPTY_IMPORT_WARNING,
    import_file,
    import_statement,
    preview_statement,
    validate_csv_structure,
)

HEADER = "Datum;Naam/Omschrijving;Rekening;Tegenrekening;Code;Af/Bij;Bedrag;MutatieSoort;Mededelingen"


def make_csv(*rows):
    return "\n".join((HEADER,) + rows) + "\n"


def test_single_row_end_to_end():
    text = make_csv("12-11-2024;Albert Heijn;NL01;NL02;GT;Af;12,34;;boodschappen")
    result = import_statement(text)

    assert len(result.transactions) == 1
    t = result.transactions[0]
    assert t.direction == DEBIT
    assert t.amount == Decimal("12.34")
    assert t.category_id == "supermarkt"
    assert result.errors == []
    assert result.warnings == []
    assert result.imported_rows == result.total_rows == 1


def test_duplicates_are_warned_but_kept():
    row = "12-11-2024;Albert Heijn;NL01;NL02;GT;Af;12,34;;boodschappen"
    text = make_csv(row, row, "13-11-2024;Jumbo;NL01;NL02;GT;Af;5,00;;", row)
    result = import_statement(text)

    assert result.imported_rows == 4
    assert len(result.warnings) == 2
    assert "line 3" in result.warnings[0]
    assert "line 5" in result.warnings[1]
    assert "12-11-2024" in result.warnings[0]
    assert "12.34" in result.warnings[0]


def test_bad_rows_are_skipped_with_line_numbers():
    text = make_csv(
        "99-99-2024;Albert Heijn;NL01;NL02;GT;Af;12,34;;",
        "12-11-2024;Jumbo;NL01;NL02;GT;Af;abc;;",
        "12-11-2024;too;few;fields",
        "13-11-2024;Werkgever BV;NL01;NL02;GT;Bij;2.500,00;;Salaris",
        ";Leeg;NL01;NL02;GT;Af;1,00;;",
    )
    result = import_statement(text)

    assert result.total_rows == 5
    assert result.imported_rows == 1
    assert len(result.errors) == 4
    assert result.errors[0].startswith("Line 2:")
    assert result.errors[1].startswith("Line 3:")
    assert result.errors[2].startswith("Line 4:")
    assert result.errors[3].startswith("Line 6:")
    assert "Date is empty" in result.errors[3]

    salary = result.transactions[0]
    assert salary.direction == CREDIT
    assert salary.amount == Decimal("2500.00")
    assert salary.category_id == "salaris"


def test_unparseable_quoting_skips_only_that_row():
    text = make_csv(
        '12-11-2024;"Albert" Heijn;NL01;NL02;GT;Af;12,34;;x',
        "13-11-2024;Jumbo;NL01;NL02;GT;Af;5,00;;",
    )
    result = import_statement(text)

    assert result.total_rows == 2
    assert result.imported_rows == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Line 2: Malformed row")
    assert result.transactions[0].description == "Jumbo"


def test_missing_amount_column_is_logged(caplog):
    text = "Datum;Naam/Omschrijving\n12-11-2024;Albert Heijn\n"
    with caplog.at_level("WARNING", logger="bankinsight.importer"):
        result = import_statement(text)

    assert "No column found for: amount" in caplog.text
    assert result.imported_rows == 0
    assert "Amount is empty" in result.errors[0]


def test_empty_import_warns():
    result = import_statement(HEADER + "\n")

    assert result.transactions == []
    assert result.total_rows == 0
    assert result.warnings == [EMPTY_IMPORT_WARNING]


def test_import_order_is_preserved():
    text = make_csv(
        "14-11-2024;C;NL01;NL02;GT;Af;3,00;;",
        "12-11-2024;A;NL01;NL02;GT;Af;1,00;;",
        "13-11-2024;B;NL01;NL02;GT;Af;2,00;;",
    )
    result = import_statement(text)
    assert [t.description for t in result.transactions] == ["C", "A", "B"]
    assert len({t.id for t in result.transactions}) == 3


def test_auto_categorize_can_be_disabled():
    text = make_csv("12-11-2024;Albert Heijn;NL01;NL02;GT;Af;12,34;;")
    result = import_statement(text, ImportConfig(auto_categorize=False))
    assert result.transactions[0].category_id is None


def test_headerless_dialect_uses_column_mapping():
    text = "20241112,Salaris,2500,NL01,NL02,,1000\n20241113,Huur,-900,NL01,NL03,,100\n"
    result = import_statement(text, DIALECTS["generic"])

    assert result.imported_rows == 2
    salary, rent = result.transactions
    assert salary.direction == CREDIT
    assert salary.category_id == "salaris"
    assert salary.balance_after == Decimal("1000")
    assert rent.direction == DEBIT
    assert rent.amount == Decimal("900")
    assert rent.category_id == "woning"


def test_preview_truncates_transactions():
    text = make_csv(
        "12-11-2024;A;NL01;NL02;GT;Af;1,00;;",
        "13-11-2024;B;NL01;NL02;GT;Af;2,00;;",
        "14-11-2024;C;NL01;NL02;GT;Af;3,00;;",
    )
    result = preview_statement(text, limit=2)
    assert [t.description for t in result.transactions] == ["A", "B"]
    assert result.total_rows == 3


def test_validate_csv_structure():
    assert validate_csv_structure(make_csv())
    assert not validate_csv_structure("Datum;Bedrag\n")
    assert not validate_csv_structure(HEADER.lower() + "\n")
    assert not validate_csv_structure("")


def test_import_file_reads_text(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(make_csv("12-11-2024;Albert Heijn;NL01;NL02;GT;Af;12,34;;"), encoding="utf-8")

    result = import_file(str(path))
    assert result.imported_rows == 1


def test_import_file_missing_is_fatal(tmp_path):
    with pytest.raises(IoFailure):
        import_file(str(tmp_path / "missing.csv"))


def test_import_file_undecodable_is_fatal(tmp_path):
    path = tmp_path / "export.csv"
    path.write_bytes(b"\xff\xfe\x00\xd8 broken")
    with pytest.raises(IoFailure):
        import_file(str(path))
