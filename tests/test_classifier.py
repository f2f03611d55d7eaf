import pytest

from dompet.llm.classifier import InputClass, can_skip_nlu, classify_input


@pytest.mark.parametrize(
    "text, expected",
    [
        ("makan 25.000", InputClass.CLEAN),
        ("bensin Rp30000", InputClass.CLEAN),
        ("orderan 59000", InputClass.CLEAN),
        ("makan 25rb", InputClass.SLANG),
        ("rokok goceng", InputClass.SLANG),
        ("hutang ke Siti sejuta", InputClass.SLANG),
        ("hutang 1jt", InputClass.SLANG),
        ("tip 50ribu", InputClass.SLANG),
        ("bayar setengah juta", InputClass.SLANG),
        ("batalkan goal motor", InputClass.EDIT),
        ("rekap minggu ini", InputClass.QUERY),
        ("daftar hutang", InputClass.QUERY),
        ("target", InputClass.QUERY),
        ("hapus transaksi makan", InputClass.EDIT),
        ("yang terakhir salah", InputClass.EDIT),
        ("kewajiban cicilan motor", InputClass.CLEAN),
        ("cicilan motor 50rb per hari", InputClass.SLANG),
        ("abis narik seharian capek", InputClass.COMPLEX),
    ],
)
def test_single_line_classification(text, expected):
    assert classify_input(text) == expected


def test_edit_keyword_beats_query_keyword():
    assert classify_input("lihat lalu hapus yang terakhir") == InputClass.EDIT


def test_multiline_all_explicit_is_clean():
    assert classify_input("makan 25.000\nbensin 30.000\norderan Rp120000") == InputClass.CLEAN


def test_multiline_with_slang_is_complex():
    assert classify_input("makan 25.000\nbensin 30rb") == InputClass.COMPLEX


def test_multiline_never_falls_through_to_edit_rule():
    # Every line is clean, so the edit keyword on one line does not matter
    assert classify_input("hapus 25.000\nbensin 30.000") == InputClass.CLEAN
    assert classify_input("hapus makan\nbensin 30.000") == InputClass.COMPLEX


def test_blank_lines_are_ignored():
    assert classify_input("makan 25.000\n\n") == InputClass.CLEAN


def test_only_clean_and_query_skip_nlu():
    assert can_skip_nlu(InputClass.CLEAN)
    assert can_skip_nlu(InputClass.QUERY)
    assert not can_skip_nlu(InputClass.SLANG)
    assert not can_skip_nlu(InputClass.EDIT)
    assert not can_skip_nlu(InputClass.COMPLEX)
