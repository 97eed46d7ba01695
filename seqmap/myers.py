"""Myers' bit-vector edit distance with Ukkonen banding.

Sequences handled here are lists of alphabet indices (ints in
``range(alphabet_length)``).  Each column of the dynamic programming
matrix is split into 64-cell blocks encoded as bit vectors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

WORD_SIZE = 64
WORD_MASK = (1 << WORD_SIZE) - 1
HIGH_BIT_MASK = 1 << (WORD_SIZE - 1)

# Every STRONG_REDUCE_NUM columns the band is trimmed in a slower, tighter way.
_STRONG_REDUCE_NUM = 2048


class AlignMode(Enum):
    """Alignment method."""

    NW = 0  # global: gaps at both ends are penalised
    SHW = 1  # prefix: gap at the target end is free
    HW = 2  # infix: gaps at both ends of the target are free


class EqualityDefinition:
    """Equality relation on alphabet indices.

    Every symbol equals itself; extra pairs of characters may be declared
    equal as well.  Pairs naming characters outside the alphabet are ignored.
    """

    def __init__(self, alphabet: str, additional_equalities: Iterable[tuple[str, str]] = ()) -> None:
        self._extra: set[tuple[int, int]] = set()
        for first, second in additional_equalities:
            a = alphabet.find(first)
            b = alphabet.find(second)
            if a != -1 and b != -1:
                self._extra.add((a, b))
                self._extra.add((b, a))

    def are_equal(self, a: int, b: int) -> bool:
        """Return True if symbols ``a`` and ``b`` are defined as equal."""
        return a == b or (a, b) in self._extra


@dataclass
class Block:
    """One 64-cell block of a column: vertical deltas and bottom cell score."""

    p: int
    m: int
    score: int

    def cell_values(self) -> list[int]:
        """Values of the cells in the block, starting with the bottom cell."""
        values = []
        score = self.score
        mask = HIGH_BIT_MASK
        for _ in range(WORD_SIZE - 1):
            values.append(score)
            if self.p & mask:
                score -= 1
            if self.m & mask:
                score += 1
            mask >>= 1
        values.append(score)
        return values


@dataclass
class AlignmentData:
    """Stored columns of the matrix, needed to reconstruct an alignment.

    Block ``b`` of column ``c`` lives at index ``max_num_blocks * c + b``.
    """

    max_num_blocks: int
    num_columns: int
    ps: list[int] = field(init=False)
    ms: list[int] = field(init=False)
    scores: list[int] = field(init=False)
    first_blocks: list[int] = field(init=False)
    last_blocks: list[int] = field(init=False)

    def __post_init__(self) -> None:
        size = self.max_num_blocks * self.num_columns
        self.ps = [0] * size
        self.ms = [0] * size
        self.scores = [0] * size
        self.first_blocks = [0] * self.num_columns
        self.last_blocks = [0] * self.num_columns


def _ceil_div(x: int, y: int) -> int:
    return -(-x // y)


def _all_block_cells_larger(block: Block, k: int) -> bool:
    return all(value > k for value in block.cell_values())


def build_peq(alphabet_length: int, query: Sequence[int], equality: EqualityDefinition) -> list[list[int]]:
    """Build the query profile.

    ``peq[s][b]`` has bit ``i`` set when symbol ``i`` of block ``b`` of the
    query equals ``s``.  The query is treated as padded with wildcards up to a
    whole number of blocks, and an extra last row (the wildcard symbol) is all
    ones.
    """
    max_num_blocks = _ceil_div(len(query), WORD_SIZE)
    peq = []
    for symbol in range(alphabet_length):
        row = []
        for b in range(max_num_blocks):
            chunk = query[b * WORD_SIZE:(b + 1) * WORD_SIZE]
            word = WORD_MASK ^ ((1 << len(chunk)) - 1)  # padding matches anything
            for bit, letter in enumerate(chunk):
                if equality.are_equal(letter, symbol):
                    word |= 1 << bit
            row.append(word)
        peq.append(row)
    peq.append([WORD_MASK] * max_num_blocks)
    return peq


def calculate_block(pv: int, mv: int, eq: int, hin: int) -> tuple[int, int, int]:
    """Advance one block by one column.

    Returns ``(hout, pv_out, mv_out)``: the horizontal delta leaving the
    bottom of the block and the new vertical delta bit vectors.
    """
    hin_is_neg = 1 if hin < 0 else 0
    xv = eq | mv
    eq |= hin_is_neg
    xh = ((((eq & pv) + pv) & WORD_MASK) ^ pv) | eq

    ph = mv | (~(xh | pv) & WORD_MASK)
    mh = pv & xh

    hout = (1 if ph & HIGH_BIT_MASK else 0) - (1 if mh & HIGH_BIT_MASK else 0)

    ph = (ph << 1) & WORD_MASK
    mh = (mh << 1) & WORD_MASK
    mh |= hin_is_neg
    if hin > 0:
        ph |= 1

    pv_out = mh | (~(xv | ph) & WORD_MASK)
    mv_out = ph & xv
    return hout, pv_out, mv_out


def _initial_blocks(max_num_blocks: int) -> list[Block]:
    return [Block(WORD_MASK, 0, (b + 1) * WORD_SIZE) for b in range(max_num_blocks)]


def semi_global_distance(
    peq: list[list[int]],
    w: int,
    max_num_blocks: int,
    query: Sequence[int],
    target: Sequence[int],
    k: int,
    mode: AlignMode,
) -> tuple[int | None, list[int]]:
    """Edit distance for the HW or SHW method.

    Returns ``(best_score, positions)`` where positions are the 0-based
    target indices at which the best score ends.  ``best_score`` is None
    (and positions empty) if no score is at most ``k``.
    """
    query_length = len(query)
    target_length = len(target)
    first_block = 0
    last_block = min(_ceil_div(k + 1, WORD_SIZE), max_num_blocks) - 1
    blocks = _initial_blocks(max_num_blocks)

    if mode is AlignMode.HW:
        k = min(query_length, k)

    best_score: int | None = None
    positions: list[int] = []
    start_hout = 0 if mode is AlignMode.HW else 1

    for c, symbol in enumerate(target):
        peq_c = peq[symbol]

        hout = start_hout
        for b in range(first_block, last_block + 1):
            block = blocks[b]
            hout, block.p, block.m = calculate_block(block.p, block.m, peq_c[b], hout)
            block.score += hout

        # Ukkonen band adjustment.
        if (
            last_block < max_num_blocks - 1
            and blocks[last_block].score - hout <= k
            and ((peq_c[last_block + 1] & 1) or hout < 0)
        ):
            last_block += 1
            block = blocks[last_block]
            new_hout, block.p, block.m = calculate_block(WORD_MASK, 0, peq_c[last_block], hout)
            block.score = blocks[last_block - 1].score - hout + WORD_SIZE + new_hout
        else:
            while last_block >= first_block and blocks[last_block].score >= k + WORD_SIZE:
                last_block -= 1

        if c % _STRONG_REDUCE_NUM == 0:
            while last_block >= first_block and _all_block_cells_larger(blocks[last_block], k):
                last_block -= 1

        if mode is not AlignMode.HW:
            while first_block <= last_block and blocks[first_block].score >= k + WORD_SIZE:
                first_block += 1
            if c % _STRONG_REDUCE_NUM == 0:
                while first_block <= last_block and _all_block_cells_larger(blocks[first_block], k):
                    first_block += 1

        # In HW the top boundary is all zeros, so the first block can always
        # still lead to a solution.
        if mode is AlignMode.HW:
            last_block = max(0, last_block)

        if last_block < first_block:
            return best_score, positions if best_score is not None else []

        if last_block == max_num_blocks - 1:
            col_score = blocks[last_block].score
            if col_score <= k and (best_score is None or col_score <= best_score):
                if col_score != best_score:
                    positions = []
                    best_score = col_score
                    k = best_score
                # The score seen in column c belongs to column c - w.
                positions.append(c - w)

    # The last w columns are read from the padding cells of the last column.
    if last_block == max_num_blocks - 1:
        block_scores = blocks[last_block].cell_values()
        for i in range(w):
            col_score = block_scores[i + 1]
            if col_score <= k and (best_score is None or col_score <= best_score):
                if col_score != best_score:
                    positions = []
                    k = best_score = col_score
                positions.append(target_length - w + i)

    return best_score, positions if best_score is not None else []


def nw_distance(
    peq: list[list[int]],
    w: int,
    max_num_blocks: int,
    query: Sequence[int],
    target: Sequence[int],
    k: int,
    find_alignment: bool = False,
    target_stop_position: int | None = None,
) -> tuple[int | None, int | None, AlignmentData | None]:
    """Edit distance for the global (NW) method.

    Returns ``(best_score, position, align_data)``.  With ``find_alignment``
    every computed column is stored in ``align_data``.  With
    ``target_stop_position`` set to ``p``, computation stops after column
    ``p``, which is returned as the only column of ``align_data``; the score
    is then None and the position is ``p``.  If no score is at most ``k``,
    all three values are None.
    """
    if target_stop_position is not None and find_alignment:
        raise ValueError("find_alignment and target_stop_position cannot both be set")

    query_length = len(query)
    target_length = len(target)

    if k < abs(target_length - query_length):
        return None, None, None

    k = min(k, max(query_length, target_length))

    first_block = 0
    last_block = min(
        max_num_blocks,
        _ceil_div(min(k, (k + query_length - target_length) // 2) + 1, WORD_SIZE),
    ) - 1
    blocks = _initial_blocks(max_num_blocks)

    if find_alignment:
        align_data: AlignmentData | None = AlignmentData(max_num_blocks, target_length)
    elif target_stop_position is not None:
        align_data = AlignmentData(max_num_blocks, 1)
    else:
        align_data = None

    for c, symbol in enumerate(target):
        peq_c = peq[symbol]

        hout = 1
        for b in range(first_block, last_block + 1):
            block = blocks[b]
            hout, block.p, block.m = calculate_block(block.p, block.m, peq_c[b], hout)
            block.score += hout

        # The bottom cell of the last block lies w cells below the real bottom.
        k = min(
            k,
            blocks[last_block].score
            + max(target_length - c - 1, query_length - ((1 + last_block) * WORD_SIZE - 1) - 1)
            + (w if last_block == max_num_blocks - 1 else 0),
        )

        # Adjust last block.
        if last_block + 1 < max_num_blocks and not (
            (last_block + 1) * WORD_SIZE - 1
            > k - blocks[last_block].score + 2 * WORD_SIZE - 2 - target_length + c + query_length
        ):
            last_block += 1
            block = blocks[last_block]
            new_hout, block.p, block.m = calculate_block(WORD_MASK, 0, peq_c[last_block], hout)
            block.score = blocks[last_block - 1].score - hout + WORD_SIZE + new_hout
            hout = new_hout

        while last_block >= first_block and (
            blocks[last_block].score >= k + WORD_SIZE
            or (last_block + 1) * WORD_SIZE - 1
            > k - blocks[last_block].score + 2 * WORD_SIZE - 2 - target_length + c + query_length + 1
        ):
            last_block -= 1

        # Adjust first block.
        while first_block <= last_block and (
            blocks[first_block].score >= k + WORD_SIZE
            or (first_block + 1) * WORD_SIZE - 1
            < blocks[first_block].score - k - target_length + query_length + c
        ):
            first_block += 1

        if c % _STRONG_REDUCE_NUM == 0:
            while last_block >= first_block:
                scores = blocks[last_block].cell_values()
                num_cells = WORD_SIZE - w if last_block == max_num_blocks - 1 else WORD_SIZE
                top_row = last_block * WORD_SIZE + num_cells - 1
                rows = range(top_row, top_row - num_cells, -1)
                in_band = any(
                    score <= k and row <= k - score - target_length + c + query_length + 1
                    for score, row in zip(scores[WORD_SIZE - num_cells:], rows)
                )
                if in_band:
                    break
                last_block -= 1

            while first_block <= last_block:
                scores = blocks[first_block].cell_values()
                num_cells = WORD_SIZE - w if first_block == max_num_blocks - 1 else WORD_SIZE
                top_row = first_block * WORD_SIZE + num_cells - 1
                rows = range(top_row, top_row - num_cells, -1)
                in_band = any(
                    score <= k and row >= score - k - target_length + c + query_length
                    for score, row in zip(scores[WORD_SIZE - num_cells:], rows)
                )
                if in_band:
                    break
                first_block += 1

        if last_block < first_block:
            return None, None, None

        if find_alignment:
            base = max_num_blocks * c
            for b in range(first_block, last_block + 1):
                align_data.ps[base + b] = blocks[b].p
                align_data.ms[base + b] = blocks[b].m
                align_data.scores[base + b] = blocks[b].score
            align_data.first_blocks[c] = first_block
            align_data.last_blocks[c] = last_block

        if c == target_stop_position:
            for b in range(first_block, last_block + 1):
                align_data.ps[b] = blocks[b].p
                align_data.ms[b] = blocks[b].m
                align_data.scores[b] = blocks[b].score
            align_data.first_blocks[0] = first_block
            align_data.last_blocks[0] = last_block
            return None, target_stop_position, align_data

    if last_block == max_num_blocks - 1:
        best_score = blocks[last_block].cell_values()[w]
        if best_score <= k:
            return best_score, target_length - 1, align_data

    return None, None, None