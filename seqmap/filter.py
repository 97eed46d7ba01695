"""Plane-sweep filtering of mappings, keeping the best ones per position."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import groupby
from typing import Callable, Sequence

from sortedcontainers import SortedDict

from seqmap.common import Strand

_BEGIN = 1
_END = 2


@dataclass
class MappingResult:
    """A mapping of a query segment onto a reference segment.

    Positions are 0-based and inclusive.
    """

    query_start_pos: int
    query_end_pos: int
    ref_seq_id: int
    ref_start_pos: int
    ref_end_pos: int
    nuc_identity: float
    query_seq_id: int = 0
    query_len: int = 0
    strand: Strand = Strand.FWD
    discard: bool = False

    @property
    def qlen(self) -> int:
        """Length of the mapped query segment."""
        return self.query_end_pos - self.query_start_pos + 1

    @property
    def rlen(self) -> int:
        """Length of the mapped reference segment."""
        return self.ref_end_pos - self.ref_start_pos + 1


def _sweep(
    mappings: Sequence[MappingResult],
    events: list[tuple[int, ...]],
    score: Callable[[MappingResult], float],
    start: Callable[[MappingResult], int],
) -> list[MappingResult]:
    for mapping in mappings:
        mapping.discard = True

    def order_key(idx: int) -> tuple[float, int]:
        mapping = mappings[idx]
        return (-score(mapping), -start(mapping))

    # Segments ordered by score, then start, both descending.  Segments with
    # equal score and start are indistinguishable: only one is held at a time.
    status: SortedDict = SortedDict()

    events.sort()
    for _, group in groupby(events, key=lambda event: event[:-2]):
        for event in group:
            kind, idx = event[-2], event[-1]
            key = order_key(idx)
            if kind == _BEGIN:
                status.setdefault(key, idx)
            else:
                status.pop(key, None)

        ids = status.values()
        if ids:
            best = score(mappings[ids[0]])
            for idx in ids:
                mapping = mappings[idx]
                if best > score(mapping) or not mapping.discard:
                    break
                mapping.discard = False

    return [mapping for mapping in mappings if not mapping.discard]


def filter_query_mappings(mappings: Sequence[MappingResult]) -> list[MappingResult]:
    """Keep the mappings that are best for some position of the query.

    The score of a mapping is its query length times its identity.  Returns
    the kept mappings in their original order.
    """
    if len(mappings) <= 1:
        return list(mappings)

    events: list[tuple[int, ...]] = []
    for idx, mapping in enumerate(mappings):
        events.append((mapping.query_start_pos, _BEGIN, idx))
        events.append((mapping.query_end_pos + 1, _END, idx))

    return _sweep(
        mappings,
        events,
        score=lambda m: m.qlen * m.nuc_identity,
        start=lambda m: m.query_start_pos,
    )


def _ref_pos_plus_one(seq_id: int, offset: int, ref_lengths: Sequence[int]) -> tuple[int, int]:
    if offset == ref_lengths[seq_id] - 1:
        return seq_id + 1, 0
    return seq_id, offset + 1


def filter_ref_mappings(
    mappings: Sequence[MappingResult], ref_lengths: Sequence[int]
) -> list[MappingResult]:
    """Keep the mappings that are best for some position of the reference.

    ``ref_lengths[i]`` is the length of reference sequence ``i``.  The score
    of a mapping is its reference length times its identity.  Returns the
    kept mappings in their original order.
    """
    if len(mappings) <= 1:
        return list(mappings)

    events: list[tuple[int, ...]] = []
    for idx, mapping in enumerate(mappings):
        events.append((mapping.ref_seq_id, mapping.ref_start_pos, _BEGIN, idx))
        end_seq, end_offset = _ref_pos_plus_one(
            mapping.ref_seq_id, mapping.ref_end_pos, ref_lengths
        )
        events.append((end_seq, end_offset, _END, idx))

    return _sweep(
        mappings,
        events,
        score=lambda m: m.rlen * m.nuc_identity,
        start=lambda m: m.ref_start_pos,
    )