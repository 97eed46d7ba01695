import pytest

from seqmap.common import (
    HASH_MAX,
    MinimizerInfo,
    Strand,
    add_minimizers,
    get_hash,
    get_reference_size,
    make_upper_case,
    reverse_complement,
)


def _first_byte(kmer: bytes) -> int:
    return kmer[0]


def test_reverse_complement_known_value():
    assert reverse_complement("ACGTN") == "NACGT"


@pytest.mark.parametrize("seq", ["", "A", "ACGGTTAC", "NNACGTXX", "GATTACA"])
def test_reverse_complement_is_involution(seq):
    assert reverse_complement(reverse_complement(seq)) == seq


def test_reverse_complement_keeps_length():
    seq = "ACGTTGCAAN"
    assert len(reverse_complement(seq)) == len(seq)


def test_make_upper_case_ascii():
    seq = "acgtNx-*"
    assert make_upper_case(seq) == seq.upper()


def test_make_upper_case_leaves_non_ascii():
    assert make_upper_case("aé") == "Aé"


def test_get_hash_str_and_bytes_agree():
    assert get_hash("ACGTACGT") == get_hash(b"ACGTACGT")


def test_get_hash_is_64_bit_and_deterministic():
    value = get_hash("ACGTACGTACGTACGT")
    assert 0 <= value <= HASH_MAX
    assert get_hash("ACGTACGTACGTACGT") == value


@pytest.mark.parametrize("length", [1, 7, 8, 9, 15, 16, 17, 33])
def test_get_hash_distinguishes_kmers(length):
    a = "A" * length
    c = "C" * length
    assert get_hash(a) != get_hash(c)


def test_add_minimizers_worked_example():
    index = add_minimizers([], "ACGT", 1, 1, 4, 7, hasher=_first_byte)
    a, c = ord("A"), ord("C")
    assert index == [
        MinimizerInfo(a, 7, 0, Strand.FWD),
        MinimizerInfo(c, 7, 1, Strand.FWD),
        MinimizerInfo(c, 7, 2, Strand.REV),
        MinimizerInfo(a, 7, 3, Strand.REV),
    ]


def test_add_minimizers_suppresses_repeats():
    index = add_minimizers([], "AAAA", 1, 2, 4, 0, hasher=_first_byte)
    assert len(index) == 1
    assert index[0].wpos == 0
    assert index[0].hash == ord("A")


def test_add_minimizers_skips_palindromic_kmers():
    assert add_minimizers([], "ACGT", 4, 1, 4, 0) == []


def test_add_minimizers_protein_is_forward_only():
    index = add_minimizers([], "MKV", 1, 1, 20, 3)
    assert [m.strand for m in index] == [Strand.FWD] * 3
    assert [m.wpos for m in index] == [0, 1, 2]
    assert all(m.seq_id == 3 for m in index)


def test_add_minimizers_lower_case_same_as_upper():
    seq = "ACGTTGCATTAGGCATCCGATTACAGGATCCATG"
    upper = add_minimizers([], seq, 5, 4, 4, 1)
    lower = add_minimizers([], seq.lower(), 5, 4, 4, 1)
    assert upper == lower
    assert upper


def test_add_minimizers_invariants():
    seq = "ACGTTGCATTAGGCATCCGATTACAGGATCCATGCCGTAGCTAGGCTTAACG"
    kmer, win = 5, 4
    index = add_minimizers([], seq, kmer, win, 4, 2)
    positions = [m.wpos for m in index]
    assert positions == sorted(positions)
    assert all(0 <= p <= len(seq) - kmer - win + 1 for p in positions)
    assert all(m.seq_id == 2 for m in index)
    assert all(first != second for first, second in zip(index, index[1:]))


def test_add_minimizers_appends_to_existing_index():
    existing = MinimizerInfo(1, 0, 0, Strand.FWD)
    index = [existing]
    result = add_minimizers(index, "ACGTTGCATTAGG", 3, 2, 4, 1)
    assert result is index
    assert index[0] is existing
    assert len(index) > 1


def test_add_minimizers_short_sequence_adds_nothing():
    assert add_minimizers([], "AC", 5, 2, 4, 0) == []


def test_get_reference_size(tmp_path):
    first = tmp_path / "a.fa"
    second = tmp_path / "b.fa"
    first_data = b">a\nACGT\n"
    second_data = b">b\nACGTACGTAC\n"
    first.write_bytes(first_data)
    second.write_bytes(second_data)
    assert get_reference_size([first, second]) == len(first_data) + len(second_data)


def test_get_reference_size_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_reference_size([tmp_path / "missing.fa"])