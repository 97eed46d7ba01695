"""Reconstruction of an optimal global alignment.

Alignments are lists of edit operation codes: 0 match, 1 insertion
(a query symbol with no target partner), 2 deletion (a target symbol with
no query partner) and 3 mismatch.
"""

from __future__ import annotations

from typing import Sequence

from seqmap.myers import (
    HIGH_BIT_MASK,
    WORD_MASK,
    WORD_SIZE,
    AlignmentData,
    Block,
    EqualityDefinition,
    build_peq,
    nw_distance,
)

_MATCH = 0
_INSERT = 1
_DELETE = 2
_MISMATCH = 3

# Below this estimated memory use the full matrix is kept and traced back;
# above it the problem is split in halves first.
_TRACEBACK_MEMORY_LIMIT = 1024 * 1024


class AlignmentError(Exception):
    """No alignment with the given score could be found."""


def _ceil_div(x: int, y: int) -> int:
    return -(-x // y)


def traceback_alignment(
    query_length: int,
    target_length: int,
    best_score: int,
    align_data: AlignmentData,
) -> list[int]:
    """Walk back through the stored matrix and return one optimal alignment."""
    max_num_blocks = _ceil_div(query_length, WORD_SIZE)
    w = max_num_blocks * WORD_SIZE - query_length
    ps = align_data.ps
    ms = align_data.ms
    scores = align_data.scores
    first_blocks = align_data.first_blocks
    last_blocks = align_data.last_blocks

    def left_in_band(col: int, blk: int) -> bool:
        return col > 0 and first_blocks[col - 1] <= blk <= last_blocks[col - 1]

    alignment: list[int] = []
    c = target_length - 1
    b = max_num_blocks - 1
    curr_score = best_score
    l_score: int | None = None
    u_score: int | None = None
    ul_score: int | None = None
    curr_p = ps[c * max_num_blocks + b]
    curr_m = ms[c * max_num_blocks + b]
    there_is_left = left_in_band(c, b)
    lp = lm = 0
    if there_is_left:
        lp = ps[(c - 1) * max_num_blocks + b]
        lm = ms[(c - 1) * max_num_blocks + b]
    curr_p = (curr_p << w) & WORD_MASK
    curr_m = (curr_m << w) & WORD_MASK
    block_pos = WORD_SIZE - w - 1

    def boundary_left() -> tuple[int, int]:
        left = b * WORD_SIZE + block_pos + 1
        return left, left - 1

    while True:
        if c == 0:
            there_is_left = True
            l_score, ul_score = boundary_left()

        # Scores of the neighbouring cells.
        if l_score is None and there_is_left:
            l_score = scores[(c - 1) * max_num_blocks + b]
            for _ in range(WORD_SIZE - block_pos - 1):
                if lp & HIGH_BIT_MASK:
                    l_score -= 1
                if lm & HIGH_BIT_MASK:
                    l_score += 1
                lp = (lp << 1) & WORD_MASK
                lm = (lm << 1) & WORD_MASK
        if ul_score is None:
            if l_score is not None:
                ul_score = l_score
                if lp & HIGH_BIT_MASK:
                    ul_score -= 1
                if lm & HIGH_BIT_MASK:
                    ul_score += 1
            elif left_in_band(c, b - 1):
                # Upper left cell is the bottom cell of the block above-left.
                ul_score = scores[(c - 1) * max_num_blocks + b - 1]
        if u_score is None:
            u_score = curr_score
            if curr_p & HIGH_BIT_MASK:
                u_score -= 1
            if curr_m & HIGH_BIT_MASK:
                u_score += 1
            curr_p = (curr_p << 1) & WORD_MASK
            curr_m = (curr_m << 1) & WORD_MASK

        if u_score is not None and u_score + 1 == curr_score:
            # Move up: insertion.
            curr_score = u_score
            l_score = ul_score
            u_score = ul_score = None
            if block_pos == 0:
                if b == 0:
                    alignment.append(_INSERT)
                    alignment.extend([_DELETE] * (c + 1))
                    break
                block_pos = WORD_SIZE - 1
                b -= 1
                curr_p = ps[c * max_num_blocks + b]
                curr_m = ms[c * max_num_blocks + b]
                if left_in_band(c, b):
                    there_is_left = True
                    lp = ps[(c - 1) * max_num_blocks + b]
                    lm = ms[(c - 1) * max_num_blocks + b]
                else:
                    there_is_left = False
            else:
                block_pos -= 1
                lp = (lp << 1) & WORD_MASK
                lm = (lm << 1) & WORD_MASK
            alignment.append(_INSERT)
        elif l_score is not None and l_score + 1 == curr_score:
            # Move left: deletion.
            curr_score = l_score
            u_score = ul_score
            l_score = ul_score = None
            c -= 1
            if c == -1:
                alignment.append(_DELETE)
                alignment.extend([_INSERT] * (b * WORD_SIZE + block_pos + 1))
                break
            curr_p = lp
            curr_m = lm
            if left_in_band(c, b):
                there_is_left = True
                lp = ps[(c - 1) * max_num_blocks + b]
                lm = ms[(c - 1) * max_num_blocks + b]
            elif c == 0:
                there_is_left = True
                l_score, ul_score = boundary_left()
            else:
                there_is_left = False
            alignment.append(_DELETE)
        elif ul_score is not None:
            # Move diagonally: match or mismatch.
            move = _MATCH if ul_score == curr_score else _MISMATCH
            curr_score = ul_score
            u_score = l_score = ul_score = None
            c -= 1
            if c == -1:
                alignment.append(move)
                alignment.extend([_INSERT] * (b * WORD_SIZE + block_pos))
                break
            if block_pos == 0:
                if b == 0:
                    alignment.append(move)
                    alignment.extend([_DELETE] * (c + 1))
                    break
                block_pos = WORD_SIZE - 1
                b -= 1
                curr_p = ps[c * max_num_blocks + b]
                curr_m = ms[c * max_num_blocks + b]
            else:
                block_pos -= 1
                curr_p = (lp << 1) & WORD_MASK
                curr_m = (lm << 1) & WORD_MASK
            if left_in_band(c, b):
                there_is_left = True
                lp = ps[(c - 1) * max_num_blocks + b]
                lm = ms[(c - 1) * max_num_blocks + b]
            elif c == 0:
                there_is_left = True
                l_score, ul_score = boundary_left()
            else:
                there_is_left = False
            alignment.append(move)
        else:
            break

    alignment.reverse()
    return alignment


def _column_scores(data: AlignmentData, top_first: bool) -> tuple[int, int, list[int]]:
    first = data.first_blocks[0]
    last = data.last_blocks[0]
    blocks = [Block(data.ps[i], data.ms[i], data.scores[i]) for i in range(first, last + 1)]
    values: list[int] = []
    if top_first:
        for block in blocks:
            values.extend(reversed(block.cell_values()))
    else:
        for block in reversed(blocks):
            values.extend(block.cell_values())
    return first, last, values


def hirschberg_alignment(
    query: Sequence[int],
    target: Sequence[int],
    equality: EqualityDefinition,
    alphabet_length: int,
    best_score: int,
) -> list[int]:
    """Find an optimal alignment by splitting the target in two halves."""
    query_length = len(query)
    target_length = len(target)
    max_num_blocks = _ceil_div(query_length, WORD_SIZE)
    w = max_num_blocks * WORD_SIZE - query_length
    r_query = list(query)[::-1]
    r_target = list(target)[::-1]

    peq = build_peq(alphabet_length, query, equality)
    r_peq = build_peq(alphabet_length, r_query, equality)

    left_half_width = target_length // 2
    right_half_width = target_length - left_half_width
    if left_half_width == 0:
        raise AlignmentError("target is too short to split")

    _, _, left_data = nw_distance(
        peq, w, max_num_blocks, query, target, best_score,
        target_stop_position=left_half_width - 1,
    )
    _, _, right_data = nw_distance(
        r_peq, w, max_num_blocks, r_query, r_target, best_score,
        target_stop_position=right_half_width - 1,
    )
    if left_data is None or right_data is None:
        raise AlignmentError(f"no alignment with score {best_score}")

    first_left, last_left, scores_left = _column_scores(left_data, top_first=True)
    scores_left_start = first_left * WORD_SIZE
    if last_left == max_num_blocks - 1:
        scores_left = scores_left[:len(scores_left) - w]

    _, last_right, scores_right = _column_scores(right_data, top_first=False)
    scores_right_start = query_length - (last_right + 1) * WORD_SIZE
    if scores_right_start < 0:
        # Padding ends up at the front once the column is reversed.
        scores_right = scores_right[w:]
        scores_right_start += w

    split_row: int | None = None
    left_score = right_score = 0
    lo = max(scores_left_start, scores_right_start - 1)
    hi = min(
        scores_left_start + len(scores_left) - 1,
        scores_right_start + len(scores_right) - 2,
    )
    for row in range(lo, hi + 1):
        left = scores_left[row - scores_left_start]
        right = scores_right[row + 1 - scores_right_start]
        if left + right == best_score:
            split_row, left_score, right_score = row, left, right
            break

    if split_row is None and scores_left_start == 0 and scores_right_start == 0:
        left, right = left_half_width, scores_right[0]
        if left + right == best_score:
            split_row, left_score, right_score = -1, left, right
    if (
        split_row is None
        and scores_left_start + len(scores_left) == query_length
        and scores_right_start + len(scores_right) == query_length
    ):
        left, right = scores_left[-1], right_half_width
        if left + right == best_score:
            split_row, left_score, right_score = query_length - 1, left, right

    if split_row is None:
        raise AlignmentError(f"no alignment with score {best_score}")

    ul_height = split_row + 1
    upper_left = obtain_alignment(
        query[:ul_height], target[:left_half_width], equality, alphabet_length, left_score
    )
    lower_right = obtain_alignment(
        query[ul_height:], target[left_half_width:], equality, alphabet_length, right_score
    )
    return upper_left + lower_right


def obtain_alignment(
    query: Sequence[int],
    target: Sequence[int],
    equality: EqualityDefinition,
    alphabet_length: int,
    best_score: int,
) -> list[int]:
    """Return one global alignment of ``query`` and ``target`` scoring ``best_score``."""
    query_length = len(query)
    target_length = len(target)
    if query_length == 0 or target_length == 0:
        op = _DELETE if query_length == 0 else _INSERT
        return [op] * (query_length + target_length)

    max_num_blocks = _ceil_div(query_length, WORD_SIZE)
    w = max_num_blocks * WORD_SIZE - query_length
    data_size = (2 * 8 + 4) * max_num_blocks * target_length + 2 * 4 * target_length
    if data_size >= _TRACEBACK_MEMORY_LIMIT:
        return hirschberg_alignment(query, target, equality, alphabet_length, best_score)

    peq = build_peq(alphabet_length, query, equality)
    score, position, align_data = nw_distance(
        peq, w, max_num_blocks, query, target, best_score, find_alignment=True
    )
    if score != best_score or position != target_length - 1 or align_data is None:
        raise AlignmentError(f"no alignment with score {best_score}")
    return traceback_alignment(query_length, target_length, best_score, align_data)