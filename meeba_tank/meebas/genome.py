"""
Genome encoding for meebas.

A genome is a plain ``bytes`` sequence. Any byte >= 0xF0 is a control byte
that starts a new gene; the data bytes (< 0xF0) that follow are fed to a
reader chosen by that control byte, until the next control byte:

    0xF0  size gene   every ``bits_per_mass`` set bits add 1 to mass
    0xF1  spike gene  adds a spike at angle index/len(genome); every
                      ``bits_per_spike_length`` set bits add 1 to its length

Unknown control bytes select a reader that ignores its data bytes, so any
byte sequence decodes without error.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterable

from ..config import GenomeConfig, MutationConfig
from ..utils.trig import rand_int

CONTROL_BYTE = 0xF0
SIZE_GENE = 0xF0
SPIKE_GENE = 0xF1


@dataclass
class SpikeCommand:
    angle: float  # turns
    length: int = 0


@dataclass
class Commands:
    """Build instructions decoded from a genome."""

    mass: int = 0
    spikes: list[SpikeCommand] = field(default_factory=list)


def count_bits(byte: int) -> int:
    return bin(byte).count("1")


def is_control_byte(byte: int) -> bool:
    return byte >= CONTROL_BYTE


# ------------------------------------------------------------------ #
# Gene readers
# ------------------------------------------------------------------ #
class NoopReader:
    """Skips data bytes. Active before the first gene and for unknown genes."""

    def __init__(self, commands: Commands, index: int, length: int, config: GenomeConfig):
        pass

    def read(self, byte: int) -> None:
        pass


class SizeReader(NoopReader):
    def __init__(self, commands: Commands, index: int, length: int, config: GenomeConfig):
        self.commands = commands
        self.bits_per_unit = config.bits_per_mass
        self.bits = 0

    def read(self, byte: int) -> None:
        before = self.bits // self.bits_per_unit
        self.bits += count_bits(byte)
        self.commands.mass += self.bits // self.bits_per_unit - before


class SpikeReader(NoopReader):
    def __init__(self, commands: Commands, index: int, length: int, config: GenomeConfig):
        self.bits_per_unit = config.bits_per_spike_length
        self.bits = 0
        self.spike = SpikeCommand(angle=index / length)
        commands.spikes.append(self.spike)

    def read(self, byte: int) -> None:
        self.bits += count_bits(byte)
        self.spike.length = self.bits // self.bits_per_unit


GENE_READERS: dict[int, type[NoopReader]] = {
    SIZE_GENE: SizeReader,
    SPIKE_GENE: SpikeReader,
}


def read_genome(genome: Iterable[int], config: GenomeConfig | None = None) -> Commands:
    """Decode a genome into build commands in a single left-to-right pass."""
    config = config or GenomeConfig()
    genome = bytes(genome)
    commands = Commands()
    reader: NoopReader = NoopReader(commands, 0, len(genome), config)

    for index, byte in enumerate(genome):
        if is_control_byte(byte):
            reader_type = GENE_READERS.get(byte, NoopReader)
            reader = reader_type(commands, index, len(genome), config)
        else:
            reader.read(byte)

    return commands


# ------------------------------------------------------------------ #
# Creation & replication
# ------------------------------------------------------------------ #
def _random_control_byte(rng: random.Random, config: GenomeConfig) -> int:
    types = [byte for byte, _ in config.control_byte_weights]
    weights = [weight for _, weight in config.control_byte_weights]
    return rng.choices(types, weights=weights)[0]


def create_genome(rng: random.Random, config: GenomeConfig | None = None) -> bytes:
    """A random genome of 1..2x the average gene count, each gene 1..2x the average size."""
    config = config or GenomeConfig()
    max_genes = 2 * config.average_gene_count
    max_bytes = 2 * config.average_gene_size

    genome = bytearray()
    for _ in range(rand_int(rng, 1, max_genes)):
        genome.append(_random_control_byte(rng, config))
        for _ in range(rand_int(rng, 1, max_bytes)):
            genome.append(rand_int(rng, 0, CONTROL_BYTE))
    return bytes(genome)


def split_genes(genome: bytes) -> list[bytes]:
    """Split a genome at its control bytes. Leading data bytes form their own chunk."""
    genes: list[bytes] = []
    start = 0
    for index, byte in enumerate(genome):
        if is_control_byte(byte) and index > start:
            genes.append(genome[start:index])
            start = index
    if start < len(genome):
        genes.append(genome[start:])
    return genes


def _repeat_items(items: list, chance: float, rng: random.Random) -> list:
    repeated = []
    for item in items:
        repeated.append(item)
        if rng.random() < chance:
            repeated.append(item)
    return repeated


def _drop_items(items: list, chance: float, rng: random.Random) -> list:
    return [item for item in items if rng.random() >= chance]


def _flip_bits(byte: int, chance: float, rng: random.Random) -> int:
    mask = 0
    for bit in range(8):
        if rng.random() < chance:
            mask |= 1 << bit
    flipped = byte ^ mask
    # A flip may not turn data into a control byte or the other way around
    if is_control_byte(flipped) != is_control_byte(byte):
        return byte
    return flipped


def mutate_genome(genome: bytes, rng: random.Random, mutation: MutationConfig) -> bytes:
    data = [_flip_bits(byte, mutation.bit_flip_chance, rng) for byte in genome]
    data = _repeat_items(data, mutation.repeat_byte_chance, rng)
    data = _drop_items(data, mutation.drop_byte_chance, rng)

    genes = split_genes(bytes(data))
    genes = _repeat_items(genes, mutation.repeat_gene_chance, rng)
    genes = _drop_items(genes, mutation.drop_gene_chance, rng)
    return b"".join(genes)


def replicate_genome(
    genome: Iterable[int],
    rng: random.Random | None = None,
    mutation: MutationConfig | None = None,
) -> bytes:
    """Copy a genome for a child. Mutations only apply when enabled in config."""
    genome = bytes(genome)
    if rng is None or mutation is None or not mutation.enabled:
        return genome
    return mutate_genome(genome, rng, mutation)
