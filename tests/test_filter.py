from seqmap.filter import MappingResult, filter_query_mappings, filter_ref_mappings


def q(start, end, identity):
    return MappingResult(
        query_start_pos=start,
        query_end_pos=end,
        ref_seq_id=0,
        ref_start_pos=0,
        ref_end_pos=0,
        nuc_identity=identity,
    )


def r(seq_id, start, end, identity):
    return MappingResult(
        query_start_pos=0,
        query_end_pos=99,
        ref_seq_id=seq_id,
        ref_start_pos=start,
        ref_end_pos=end,
        nuc_identity=identity,
    )


def test_lengths():
    m = MappingResult(10, 19, 0, 5, 34, 0.9)
    assert m.qlen == 10
    assert m.rlen == 30


def test_query_empty():
    assert filter_query_mappings([]) == []


def test_query_single_untouched():
    m = q(0, 99, 0.5)
    assert filter_query_mappings([m]) == [m]
    assert m.discard is False


def test_query_worse_overlap_dropped():
    a = q(0, 99, 0.95)
    b = q(0, 99, 0.90)
    assert filter_query_mappings([b, a]) == [a]
    assert b.discard is True
    assert a.discard is False


def test_query_disjoint_kept_in_order():
    a = q(0, 99, 0.95)
    b = q(200, 299, 0.80)
    assert filter_query_mappings([b, a]) == [b, a]


def test_query_contained_short_mapping_dropped():
    long_one = q(0, 999, 0.90)
    short_one = q(100, 199, 0.99)
    assert filter_query_mappings([long_one, short_one]) == [long_one]


def test_query_equal_scores_both_kept():
    a = q(0, 99, 0.9)
    b = q(50, 149, 0.9)
    assert filter_query_mappings([a, b]) == [a, b]


def test_query_identical_mappings_keep_one():
    a = q(0, 99, 0.9)
    b = q(0, 99, 0.9)
    result = filter_query_mappings([a, b])
    assert len(result) == 1
    assert result[0] is a


def test_query_input_list_not_shortened():
    mappings = [q(0, 99, 0.95), q(0, 99, 0.90)]
    filter_query_mappings(mappings)
    assert len(mappings) == 2


def test_ref_different_sequences_both_kept():
    a = r(0, 0, 99, 0.95)
    b = r(1, 0, 99, 0.85)
    assert filter_ref_mappings([a, b], [1000, 1000]) == [a, b]


def test_ref_end_at_last_base_moves_to_next_sequence():
    a = r(0, 90, 99, 0.95)
    b = r(1, 0, 9, 0.80)
    assert filter_ref_mappings([a, b], [100, 100]) == [a, b]


def test_ref_ignores_query_positions():
    a = r(0, 0, 99, 0.95)
    b = r(0, 500, 599, 0.80)
    assert filter_ref_mappings([a, b], [1000]) == [a, b]


def test_ref_single_untouched():
    a = r(0, 0, 99, 0.95)
    assert filter_ref_mappings([a], [1000]) == [a]
    assert a.discard is False