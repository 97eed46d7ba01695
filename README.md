# seqmap

Building blocks for approximate sequence mapping:

- **Edit distance alignment** (`seqmap.edlib`, `seqmap.myers`,
  `seqmap.traceback`) with Myers' bit-vector algorithm, banded with
  Ukkonen's trick. Global (NW), prefix (SHW) and infix (HW) modes, start
  and end locations, alignment paths found by traceback or by Hirschberg's
  divide and conquer, and CIGAR output.
- **Minimizer sketching** (`seqmap.common`, `seqmap.sketch`) of reference
  FASTA/FASTQ files with winnowed k-mer minimizers and a lookup index.
- **Mapping filters** (`seqmap.filter`) that keep the best mappings along
  the query or the reference with a plane sweep.

## Installation

```
pip install seqmap
```

Python 3.10 or later is required; the only dependency is
`sortedcontainers`.

## Aligning two sequences

```python
from seqmap.edlib import AlignConfig, AlignTask, CigarFormat, align, alignment_to_cigar
from seqmap.myers import AlignMode

config = AlignConfig(k=-1, mode=AlignMode.HW, task=AlignTask.PATH)
result = align("ACGT", "TTACGGTT", config)

print(result.edit_distance)      # best edit distance
print(result.end_locations)      # where the best alignments end in the target
print(result.start_locations)    # where they start
print(alignment_to_cigar(result.alignment, CigarFormat.EXTENDED))
```

The alphabet is taken from the characters of both sequences
(`transform_sequences`), so any string works.

- `AlignConfig.k`: the largest edit distance of interest. A negative value
  (the default) means no limit. When no alignment lies within `k`,
  `AlignResult.edit_distance` is `None` and the location lists are empty.
- `AlignConfig.mode`: `AlignMode.NW` (default), `AlignMode.SHW` or
  `AlignMode.HW`.
- `AlignConfig.task`: `AlignTask.DISTANCE` (default) gives the distance
  and end locations, `AlignTask.LOC` adds start locations, and
  `AlignTask.PATH` adds the alignment of the first pair of locations as a
  list of `EditOp` values.
- `AlignConfig.additional_equalities`: pairs of characters to treat as
  equal, for example `[("N", "A"), ("N", "C")]`.

`align` raises `ValueError` for an empty query. `alignment_to_cigar`
gives `=`/`X` runs in `CigarFormat.EXTENDED` (the default) and `M` runs
in `CigarFormat.STANDARD`, and raises `ValueError` for an invalid
operation code.

The lower-level pieces work on lists of alphabet indices:
`seqmap.myers.build_peq`, `semi_global_distance` and `nw_distance`
compute scores, and `seqmap.traceback.obtain_alignment` recovers an
alignment of a given score, raising `AlignmentError` when there is none.

## Minimizers and sketches

```python
from seqmap.common import Parameters, add_minimizers, get_hash, reverse_complement
from seqmap.sketch import Sketch, read_sequences

print(reverse_complement("ACGTT"))   # "AACGT"

index = []
add_minimizers(index, "ACGTACGTTTGACCA", 5, 3, 4, 0, get_hash)

params = Parameters(kmer_size=16, window_size=100, ref_sequences=["ref.fa"])
sketch = Sketch(params)
print(sketch.metadata)               # ContigInfo(name, len) per sequence
print(sketch.freq_threshold)         # minimizers this frequent are ignored
first = sketch.search_index(0, 250)  # index into sketch.minimizer_index
```

`get_hash` is the first 64 bits of MurmurHash3 x64 128 with seed 42.
`read_sequences` yields `(name, sequence)` pairs from FASTA or FASTQ
files, gzip-compressed or not. `Sketch` reads every file in
`Parameters.ref_sequences`, skips sequences shorter than the window or
k-mer size, computes minimizers on `Parameters.threads` worker threads,
and builds `minimizer_pos_lookup_index` (hash to list of
`MinimizerMetaData`) and `freq_histogram`. `search_index` returns
`len(sketch.minimizer_index)` when no minimizer lies at or after the
position.

## Filtering mappings

```python
from seqmap.filter import MappingResult, filter_query_mappings, filter_ref_mappings

mappings = [
    MappingResult(query_start_pos=0, query_end_pos=999, ref_seq_id=0,
                  ref_start_pos=0, ref_end_pos=999, nuc_identity=0.95),
    MappingResult(query_start_pos=0, query_end_pos=999, ref_seq_id=0,
                  ref_start_pos=5000, ref_end_pos=5999, nuc_identity=0.90),
]
best = filter_query_mappings(mappings)
```

`filter_query_mappings` keeps, for every query position, the mappings with
the highest score (length times identity). `filter_ref_mappings` does the
same along the reference, given the length of each reference sequence.
Both return the kept mappings in their original order and set the
`discard` flag on the mappings passed in.

## What this package does not do

There is no command-line program and no complete mapping step: nothing
here looks up query sketches against a `Sketch`, computes candidate
mappings, or writes mapping output. `Parameters.window_size` is not
derived from the other settings; set it yourself before building a
`Sketch`.

## Running the tests

```
pip install seqmap[test]
pytest
```