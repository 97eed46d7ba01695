"""Edit distance and alignment of two sequences.

Works on arbitrary strings: the alphabet is taken from the characters that
occur in the query and the target.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from itertools import groupby
from typing import Iterable

from seqmap.myers import (
    WORD_SIZE,
    AlignMode,
    EqualityDefinition,
    build_peq,
    nw_distance,
    semi_global_distance,
)
from seqmap.traceback import obtain_alignment


class AlignTask(Enum):
    """How much work ``align`` does."""

    DISTANCE = 0  # edit distance and end locations only
    LOC = 1  # also start locations
    PATH = 2  # also the alignment path


class EditOp(IntEnum):
    """Edit operation in an alignment."""

    MATCH = 0
    INSERT = 1  # query symbol with no partner in the target
    DELETE = 2  # target symbol with no partner in the query
    MISMATCH = 3


class CigarFormat(Enum):
    """CIGAR flavour: standard uses M for matches and mismatches alike."""

    STANDARD = 0
    EXTENDED = 1


@dataclass
class AlignConfig:
    """Settings for ``align``.

    ``k`` is the largest edit distance of interest; a negative value means
    no limit.  ``additional_equalities`` holds pairs of characters that are
    to be treated as equal.
    """

    k: int = -1
    mode: AlignMode = AlignMode.NW
    task: AlignTask = AlignTask.DISTANCE
    additional_equalities: Iterable[tuple[str, str]] = ()


@dataclass
class AlignResult:
    """Outcome of ``align``.

    ``edit_distance`` is None when no alignment within ``k`` exists.
    Locations are 0-based, inclusive target indices; the alignment, when
    requested, belongs to the first pair of locations.
    """

    edit_distance: int | None = None
    end_locations: list[int] = field(default_factory=list)
    start_locations: list[int] = field(default_factory=list)
    alignment: list[EditOp] = field(default_factory=list)
    alphabet_length: int = 0


def transform_sequences(query: str, target: str) -> tuple[str, list[int], list[int]]:
    """Map both sequences onto alphabet indices.

    The alphabet lists characters in order of first appearance, query first.
    Returns ``(alphabet, query_indices, target_indices)``.
    """
    index: dict[str, int] = {}

    def encode(seq: str) -> list[int]:
        return [index.setdefault(ch, len(index)) for ch in seq]

    query_indices = encode(query)
    target_indices = encode(target)
    return "".join(index), query_indices, target_indices


def align(query: str, target: str, config: AlignConfig | None = None) -> AlignResult:
    """Compute the edit distance of ``query`` against ``target``.

    Depending on ``config.task`` also finds start locations and an
    optimal alignment.
    """
    if config is None:
        config = AlignConfig()
    if not query:
        raise ValueError("query must not be empty")

    alphabet, q, t = transform_sequences(query, target)
    alphabet_length = len(alphabet)
    result = AlignResult(alphabet_length=alphabet_length)

    max_num_blocks = -(-len(q) // WORD_SIZE)
    w = max_num_blocks * WORD_SIZE - len(q)
    equality = EqualityDefinition(alphabet, config.additional_equalities)
    peq = build_peq(alphabet_length, q, equality)

    dynamic_k = config.k < 0
    k = WORD_SIZE if dynamic_k else config.k

    while True:
        if config.mode in (AlignMode.HW, AlignMode.SHW):
            score, positions = semi_global_distance(peq, w, max_num_blocks, q, t, k, config.mode)
        else:
            score, _, _ = nw_distance(peq, w, max_num_blocks, q, t, k)
            positions = []
        k *= 2
        if not dynamic_k or score is not None:
            break

    if score is None:
        return result

    result.edit_distance = score
    result.end_locations = [len(t) - 1] if config.mode is AlignMode.NW else list(positions)

    if config.task in (AlignTask.LOC, AlignTask.PATH):
        if config.mode is AlignMode.HW:
            r_target = t[::-1]
            r_query = q[::-1]
            r_peq = build_peq(alphabet_length, r_query, equality)
            starts = []
            for end in result.end_locations:
                _, shw_positions = semi_global_distance(
                    r_peq, w, max_num_blocks, r_query,
                    r_target[len(t) - end - 1:], score, AlignMode.SHW,
                )
                # The last position keeps the alignment from opening with
                # insertions where mismatches would do.
                starts.append(end - shw_positions[-1])
            result.start_locations = starts
        else:
            result.start_locations = [0] * len(result.end_locations)

    if config.task is AlignTask.PATH:
        start = result.start_locations[0]
        end = result.end_locations[0]
        ops = obtain_alignment(q, t[start:end + 1], equality, alphabet_length, score)
        result.alignment = [EditOp(op) for op in ops]

    return result


_STANDARD_CHARS = {EditOp.MATCH: "M", EditOp.INSERT: "I", EditOp.DELETE: "D", EditOp.MISMATCH: "M"}
_EXTENDED_CHARS = {EditOp.MATCH: "=", EditOp.INSERT: "I", EditOp.DELETE: "D", EditOp.MISMATCH: "X"}


def alignment_to_cigar(alignment: Iterable[int], cigar_format: CigarFormat = CigarFormat.EXTENDED) -> str:
    """Render an alignment as a CIGAR string.

    Raises ValueError for an unknown format or an invalid operation code.
    """
    if not isinstance(cigar_format, CigarFormat):
        raise ValueError(f"unknown CIGAR format: {cigar_format!r}")
    chars = _STANDARD_CHARS if cigar_format is CigarFormat.STANDARD else _EXTENDED_CHARS
    try:
        moves = [chars[EditOp(op)] for op in alignment]
    except ValueError as exc:
        raise ValueError(f"invalid edit operation in alignment: {exc}") from None
    return "".join(f"{sum(1 for _ in run)}{move}" for move, run in groupby(moves))