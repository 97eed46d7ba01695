import random

import pytest

from seqmap.myers import EqualityDefinition, build_peq, nw_distance
from seqmap.traceback import (
    AlignmentError,
    hirschberg_alignment,
    obtain_alignment,
    traceback_alignment,
)

ALPHABET = "ACGT"


def _distance(query, target, equality):
    blocks = -(-len(query) // 64)
    w = blocks * 64 - len(query)
    peq = build_peq(len(ALPHABET), query, equality)
    score, _, _ = nw_distance(peq, w, blocks, query, target, len(query) + len(target))
    return score


def _walk(alignment, query, target, equality):
    qi = ti = cost = 0
    for op in alignment:
        if op == 0:
            assert equality.are_equal(query[qi], target[ti])
            qi += 1
            ti += 1
        elif op == 3:
            assert not equality.are_equal(query[qi], target[ti])
            qi += 1
            ti += 1
            cost += 1
        elif op == 1:
            qi += 1
            cost += 1
        elif op == 2:
            ti += 1
            cost += 1
        else:
            raise AssertionError(op)
    return qi, ti, cost


def _pair(seed, query_length, edits):
    rng = random.Random(seed)
    query = [rng.randrange(4) for _ in range(query_length)]
    target = list(query)
    for _ in range(edits):
        kind = rng.randrange(3)
        pos = rng.randrange(len(target))
        if kind == 0:
            target[pos] = rng.randrange(4)
        elif kind == 1:
            target.insert(pos, rng.randrange(4))
        elif len(target) > 1:
            del target[pos]
    return query, target


def test_identical_sequences_align_as_matches():
    eq = EqualityDefinition(ALPHABET)
    query = [0, 1, 2, 3, 0]
    assert obtain_alignment(query, query, eq, 4, 0) == [0] * 5


def test_single_insertion():
    eq = EqualityDefinition(ALPHABET)
    assert obtain_alignment([0, 1, 3], [0, 3], eq, 4, 1) == [0, 1, 0]


def test_empty_query_gives_deletions():
    eq = EqualityDefinition(ALPHABET)
    assert obtain_alignment([], [0, 1, 2], eq, 4, 3) == [2, 2, 2]


def test_empty_target_gives_insertions():
    eq = EqualityDefinition(ALPHABET)
    assert obtain_alignment([0, 1], [], eq, 4, 2) == [1, 1]


def test_additional_equality_counts_as_match():
    eq = EqualityDefinition(ALPHABET, [("A", "C")])
    assert obtain_alignment([0], [1], eq, 4, 0) == [0]


@pytest.mark.parametrize("seed,length,edits", [(1, 10, 2), (2, 70, 5), (3, 150, 12), (4, 200, 30)])
def test_obtain_alignment_is_consistent(seed, length, edits):
    eq = EqualityDefinition(ALPHABET)
    query, target = _pair(seed, length, edits)
    score = _distance(query, target, eq)
    alignment = obtain_alignment(query, target, eq, 4, score)
    assert _walk(alignment, query, target, eq) == (len(query), len(target), score)


@pytest.mark.parametrize("seed,length,edits", [(5, 20, 3), (6, 90, 8), (7, 140, 15)])
def test_traceback_alignment_is_consistent(seed, length, edits):
    eq = EqualityDefinition(ALPHABET)
    query, target = _pair(seed, length, edits)
    score = _distance(query, target, eq)
    blocks = -(-len(query) // 64)
    w = blocks * 64 - len(query)
    peq = build_peq(4, query, eq)
    found, position, data = nw_distance(peq, w, blocks, query, target, score, find_alignment=True)
    assert found == score
    assert position == len(target) - 1
    alignment = traceback_alignment(len(query), len(target), score, data)
    assert _walk(alignment, query, target, eq) == (len(query), len(target), score)


@pytest.mark.parametrize("seed,length,edits", [(8, 12, 2), (9, 80, 6), (10, 160, 20)])
def test_hirschberg_alignment_is_consistent(seed, length, edits):
    eq = EqualityDefinition(ALPHABET)
    query, target = _pair(seed, length, edits)
    score = _distance(query, target, eq)
    alignment = hirschberg_alignment(query, target, eq, 4, score)
    assert _walk(alignment, query, target, eq) == (len(query), len(target), score)


def test_hirschberg_rejects_impossible_score():
    eq = EqualityDefinition(ALPHABET)
    with pytest.raises(AlignmentError):
        hirschberg_alignment([0, 1, 2], [0, 1, 2, 3, 3], eq, 4, 0)


def test_obtain_alignment_rejects_wrong_score():
    eq = EqualityDefinition(ALPHABET)
    with pytest.raises(AlignmentError):
        obtain_alignment([0, 1, 2], [3, 3, 3], eq, 4, 1)