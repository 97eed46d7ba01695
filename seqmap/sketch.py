"""Minimizer sketch and lookup index of reference sequences."""

from __future__ import annotations

import gzip
import logging
import os
from bisect import bisect_left
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import IO, Iterator, Sequence

from seqmap.common import MinimizerInfo, Parameters, Strand, add_minimizers

logger = logging.getLogger(__name__)

# Largest value of a 32-bit signed int: no minimizer is ignored at this threshold.
INT_MAX = 2**31 - 1

_GZIP_MAGIC = b"\x1f\x8b"


@dataclass
class ContigInfo:
    """Name and length of a reference sequence."""

    name: str
    len: int


@dataclass
class MinimizerMetaData:
    """Where a minimizer occurs: sequence number, window position and strand."""

    seq_id: int
    wpos: int
    strand: Strand


def _open_text(path: str | os.PathLike[str]) -> IO[str]:
    with open(path, "rb") as probe:
        magic = probe.read(2)
    if magic == _GZIP_MAGIC:
        return gzip.open(path, "rt", encoding="latin-1")
    return open(path, "r", encoding="latin-1")


def _record_name(header: str) -> str:
    fields = header[1:].split(maxsplit=1)
    return fields[0] if fields else ""


def read_sequences(path: str | os.PathLike[str]) -> Iterator[tuple[str, str]]:
    """Yield ``(name, sequence)`` for each record of a FASTA or FASTQ file.

    The file may be gzip-compressed.  The name is the first word of the
    header line.
    """
    with _open_text(path) as handle:
        lines = (line.rstrip("\r\n") for line in handle)
        header: str | None = None
        for line in lines:
            if line.startswith((">", "@")):
                header = line
                break
        while header is not None:
            name = _record_name(header)
            chunks: list[str] = []
            next_header: str | None = None
            is_fastq = False
            for line in lines:
                if line.startswith((">", "@")):
                    next_header = line
                    break
                if line.startswith("+"):
                    is_fastq = True
                    break
                chunks.append(line.strip())
            sequence = "".join(chunks)
            if is_fastq:
                quality_length = 0
                for line in lines:
                    quality_length += len(line.strip())
                    if quality_length >= len(sequence):
                        break
                next_header = None
                for line in lines:
                    if line.startswith((">", "@")):
                        next_header = line
                        break
            yield name, sequence
            header = next_header


class Sketch:
    """Minimizers of the reference sequences and an index for fast lookup.

    Building happens in the constructor: minimizers are computed for every
    reference sequence, indexed by hash, and the most frequent ones are
    marked to be ignored during lookups.
    """

    # Ignore this percentage of the most frequent minimizers during lookups.
    percentage_threshold = 0.001

    def __init__(self, params: Parameters) -> None:
        self.param = params
        self.metadata: list[ContigInfo] = []
        # Cumulative sequence counts: file i holds sequences up to entry i - 1.
        self.sequences_by_file_info: list[int] = []
        self.minimizer_pos_lookup_index: dict[int, list[MinimizerMetaData]] = {}
        self._minimizer_index: list[MinimizerInfo] = []
        self._freq_histogram: dict[int, int] = {}
        self._freq_threshold = INT_MAX
        self._build()
        self._index()
        self._compute_freq_hist()

    @property
    def minimizer_index(self) -> Sequence[MinimizerInfo]:
        """All minimizers, ordered by sequence and window position."""
        return self._minimizer_index

    @property
    def freq_histogram(self) -> dict[int, int]:
        """Maps an occurrence count to the number of minimizers occurring that often."""
        return dict(self._freq_histogram)

    @property
    def freq_threshold(self) -> int:
        """Minimizers occurring this many times or more are ignored."""
        return self._freq_threshold

    def _minimizers_of(self, job: tuple[str, int]) -> list[MinimizerInfo]:
        seq, seq_counter = job
        return list(
            add_minimizers(
                [],
                seq,
                self.param.kmer_size,
                self.param.window_size,
                self.param.alphabet_size,
                seq_counter,
            )
        )

    def _build(self) -> None:
        seq_counter = 0
        jobs: list[tuple[str, int]] = []
        for path in self.param.ref_sequences:
            logger.debug("building minimizer index for %s", path)
            for name, seq in read_sequences(path):
                self.metadata.append(ContigInfo(name, len(seq)))
                if len(seq) < self.param.window_size or len(seq) < self.param.kmer_size:
                    logger.debug("skipping short sequence %s", name)
                else:
                    jobs.append((seq, seq_counter))
                seq_counter += 1
            self.sequences_by_file_info.append(seq_counter)

        with ThreadPoolExecutor(max_workers=max(1, self.param.threads)) as pool:
            for minimizers in pool.map(self._minimizers_of, jobs):
                self._minimizer_index.extend(minimizers)

        logger.info("minimizers picked from reference = %d", len(self._minimizer_index))

    def _index(self) -> None:
        for info in self._minimizer_index:
            self.minimizer_pos_lookup_index.setdefault(info.hash, []).append(
                MinimizerMetaData(info.seq_id, info.wpos, info.strand)
            )
        logger.info("unique minimizers = %d", len(self.minimizer_pos_lookup_index))

    def _compute_freq_hist(self) -> None:
        histogram: dict[int, int] = {}
        for positions in self.minimizer_pos_lookup_index.values():
            histogram[len(positions)] = histogram.get(len(positions), 0) + 1
        self._freq_histogram = dict(sorted(histogram.items()))

        total_unique = len(self.minimizer_pos_lookup_index)
        to_ignore = int(total_unique * self.percentage_threshold / 100)

        running = 0
        for frequency in sorted(self._freq_histogram, reverse=True):
            running += self._freq_histogram[frequency]
            if running < to_ignore:
                self._freq_threshold = frequency
            elif running == to_ignore:
                self._freq_threshold = frequency
                break
            else:
                break

        if self._freq_threshold != INT_MAX:
            logger.info(
                "with threshold %s%%, ignore minimizers occurring >= %d times during lookup",
                self.percentage_threshold,
                self._freq_threshold,
            )
        else:
            logger.info(
                "with threshold %s%%, consider all minimizers during lookup",
                self.percentage_threshold,
            )

    def search_index(self, seq_id: int, winpos: int) -> int:
        """Position of the first minimizer at or after ``(seq_id, winpos)``.

        Returns ``len(minimizer_index)`` if there is none.
        """
        return bisect_left(
            self._minimizer_index,
            (seq_id, winpos),
            key=lambda info: (info.seq_id, info.wpos),
        )