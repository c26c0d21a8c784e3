"""Message layouts and permutations used when exchanging field data."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from itertools import accumulate

ReversePartitionMap = Mapping[int, Sequence[int]]
"""Destination rank -> local indices (in iteration order) sent to that rank."""


@dataclass
class OutMessage:
    """Destination ranks and the offsets of their data in the send buffer."""

    dest: list[int] = field(default_factory=list)
    offset: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class ClassPartition:
    """Partition assigning each geometric model entity to a rank.

    ``ranks`` maps ``(dimension, id)`` of a model entity to its rank.
    """

    ranks: Mapping[tuple[int, int], int]

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "ranks",
            {(int(dim), int(ident)): int(rank) for (dim, ident), rank in self.ranks.items()},
        )

    def get_rank(self, dim: int, ident: int) -> int:
        """Rank owning the model entity of dimension ``dim`` and id ``ident``."""
        try:
            return self.ranks[(dim, ident)]
        except KeyError:
            raise KeyError(f"no rank for model entity (dim={dim}, id={ident})") from None


def construct_out_message(reverse_partition: ReversePartitionMap) -> OutMessage:
    """Build the outgoing layout: ranks in ascending order with data offsets."""
    ranks = sorted(reverse_partition)
    counts = [len(reverse_partition[rank]) for rank in ranks]
    return OutMessage(dest=list(ranks), offset=[0, *accumulate(counts)])


def count_entries(reverse_partition: ReversePartitionMap) -> int:
    """Total number of local indices over all destination ranks."""
    return sum(len(indices) for indices in reverse_partition.values())


def construct_permutation(reverse_partition: ReversePartitionMap) -> list[int]:
    """Map each local index to its position in the outgoing message.

    Entries are laid out rank by rank in ascending rank order.
    """
    num_entries = count_entries(reverse_partition)
    permutation = [0] * num_entries
    entry = 0
    for rank in sorted(reverse_partition):
        for idx in reverse_partition[rank]:
            if not 0 <= idx < num_entries:
                raise ValueError(f"local index {idx} out of range for {num_entries} entries")
            permutation[idx] = entry
            entry += 1
    return permutation


def construct_gid_permutation(
    local_gids: Sequence[int], received_gids: Sequence[int]
) -> list[int]:
    """Permutation ``p`` such that ``local_gids[p[i]] == received_gids[i]``."""
    if len(local_gids) != len(received_gids):
        raise ValueError("local and received global ids differ in length")
    if sorted(local_gids) != sorted(received_gids):
        raise ValueError("received global ids are not a permutation of the local ids")
    global_to_local = {gid: i for i, gid in enumerate(local_gids)}
    return [global_to_local[gid] for gid in received_gids]


def construct_out_message_from_layout(
    rank: int, nproc: int, src_ranks: Sequence[int], offset: Sequence[int]
) -> OutMessage:
    """Build the reply layout on the server from an incoming message layout.

    ``src_ranks`` and ``offset`` describe the incoming message: for every
    sending application rank, ``nproc`` starting positions, and per server
    rank the range of received entries.
    """
    if not src_ranks:
        raise ValueError("incoming message layout has no source ranks")
    if nproc <= 0:
        raise ValueError("nproc must be positive")
    if not 0 <= rank < nproc:
        raise ValueError(f"rank {rank} out of range for {nproc} processes")
    num_app_procs = len(src_ranks) // nproc
    if num_app_procs == 0:
        raise ValueError("incoming message layout is shorter than the number of processes")
    starts = [src_ranks[i * nproc + rank] for i in range(num_app_procs)]
    total = offset[rank + 1] - offset[rank]
    degrees = [b - a for a, b in zip(starts, starts[1:])]
    degrees.append(total - starts[-1])
    out = OutMessage()
    running = 0
    for sender, degree in enumerate(degrees):
        if degree > 0:
            out.dest.append(sender)
            out.offset.append(running)
            running += degree
    out.offset.append(running)
    return out


def has_duplicates(values: Sequence[object]) -> bool:
    """True when any value appears more than once."""
    ordered = sorted(values)
    return any(a == b for a, b in zip(ordered, ordered[1:]))