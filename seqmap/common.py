"""Shared helpers for sketching: k-mer hashing, minimizers and parameters."""

from __future__ import annotations

import os
from collections import deque
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Callable, Iterable, MutableSequence

HASH_SEED = 42
HASH_MAX = (1 << 64) - 1

# Internal figures not exposed on the command line.
PVAL_CUTOFF = 1e-03  # p-value cutoff for determining window size
CONFIDENCE_INTERVAL = 0.75  # relaxes the Jaccard cutoff for mapping (0-1)
FILTER_SCORE_BEST_RANGE = 0.99  # fraction of the best score still considered good
MAX_BEST_MAPPINGS_PER_POSITION = 25

_MASK64 = HASH_MAX
_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F

_COMPLEMENT = str.maketrans("ACGT", "TGCA")
_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


class Strand(IntEnum):
    """Strand on which a k-mer or mapping lies."""

    FWD = 1
    REV = -1


class FilterMode(IntEnum):
    """How mappings are filtered."""

    MAP = 1  # best mappings for each query sequence
    ONETOONE = 2  # best mappings for query and reference alike
    NONE = 3  # no filtering


@dataclass
class Parameters:
    """Settings for sketching and mapping."""

    kmer_size: int = 16
    window_size: int = 0
    seg_length: int = 5000
    alphabet_size: int = 4
    reference_size: int = 0
    percentage_identity: float = 85.0
    filter_mode: FilterMode = FilterMode.MAP
    threads: int = 1
    ref_sequences: list[str] = field(default_factory=list)
    query_sequences: list[str] = field(default_factory=list)
    out_file_name: str = "mashmap.out"
    split: bool = True


@dataclass
class MinimizerInfo:
    """A minimizer: its hash, sequence number, window position and strand."""

    hash: int
    seq_id: int
    wpos: int
    strand: Strand


def reverse_complement(seq: str) -> str:
    """Reverse complement of a DNA sequence; other characters are kept."""
    return seq.translate(_COMPLEMENT)[::-1]


def make_upper_case(seq: str) -> str:
    """Upper-case the ASCII letters a-z and leave everything else alone."""
    return seq.translate(_UPPER)


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _MASK64


def _fmix(k: int) -> int:
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & _MASK64
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & _MASK64
    k ^= k >> 33
    return k


def _mix_k1(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK64
    k1 = _rotl(k1, 31)
    return (k1 * _C2) & _MASK64


def _mix_k2(k2: int) -> int:
    k2 = (k2 * _C2) & _MASK64
    k2 = _rotl(k2, 33)
    return (k2 * _C1) & _MASK64


def _murmur3_x64_128(data: bytes, seed: int) -> tuple[int, int]:
    length = len(data)
    h1 = h2 = seed & 0xFFFFFFFF
    body_end = length - length % 16

    for offset in range(0, body_end, 16):
        k1 = int.from_bytes(data[offset:offset + 8], "little")
        k2 = int.from_bytes(data[offset + 8:offset + 16], "little")

        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK64
        h1 = (h1 * 5 + 0x52DCE729) & _MASK64

        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK64
        h2 = (h2 * 5 + 0x38495AB5) & _MASK64

    tail = data[body_end:]
    if len(tail) > 8:
        h2 ^= _mix_k2(int.from_bytes(tail[8:], "little"))
    if tail:
        h1 ^= _mix_k1(int.from_bytes(tail[:8], "little"))

    h1 ^= length
    h2 ^= length
    h1 = (h1 + h2) & _MASK64
    h2 = (h2 + h1) & _MASK64
    h1 = _fmix(h1)
    h2 = _fmix(h2)
    h1 = (h1 + h2) & _MASK64
    h2 = (h2 + h1) & _MASK64
    return h1, h2


def get_hash(kmer: bytes | str) -> int:
    """64-bit hash of a k-mer (first half of MurmurHash3 x64 128, seed 42)."""
    if isinstance(kmer, str):
        kmer = kmer.encode("latin-1")
    return _murmur3_x64_128(kmer, HASH_SEED)[0]


def add_minimizers(
    minimizer_index: MutableSequence[MinimizerInfo],
    seq: str,
    kmer_size: int,
    window_size: int,
    alphabet_size: int,
    seq_counter: int,
    hasher: Callable[[bytes], int] = get_hash,
) -> MutableSequence[MinimizerInfo]:
    """Append the winnowed minimizers of ``seq`` to ``minimizer_index``.

    For DNA (``alphabet_size == 4``) each k-mer is hashed together with its
    reverse complement and the smaller hash is kept; k-mers whose two hashes
    are equal are skipped.  A minimizer is appended only when it differs from
    the last entry of the index.  Returns the index.
    """
    upper = make_upper_case(seq)
    data = upper.encode("latin-1")
    length = len(data)
    rev = reverse_complement(upper).encode("latin-1") if alphabet_size == 4 else None

    window: deque[tuple[MinimizerInfo, int]] = deque()

    for i in range(length - kmer_size + 1):
        window_id = i - window_size + 1

        hash_fwd = hasher(data[i:i + kmer_size])
        if rev is not None:
            hash_bwd = hasher(rev[length - i - kmer_size:length - i])
        else:
            hash_bwd = HASH_MAX  # proteins: a high dummy so it is ignored

        if hash_bwd == hash_fwd:
            continue

        current = min(hash_fwd, hash_bwd)
        strand = Strand.FWD if hash_fwd < hash_bwd else Strand.REV

        while window and window[0][1] <= i - window_size:
            window.popleft()
        while window and window[-1][0].hash >= current:
            window.pop()
        window.append((MinimizerInfo(current, seq_counter, 0, strand), i))

        if window_id >= 0:
            front = window[0][0]
            if not minimizer_index or minimizer_index[-1] != front:
                front.wpos = window_id
                minimizer_index.append(replace(front))

    return minimizer_index


def get_reference_size(paths: Iterable[str | os.PathLike[str]]) -> int:
    """Total size in bytes of the given reference files."""
    return sum(os.path.getsize(path) for path in paths)