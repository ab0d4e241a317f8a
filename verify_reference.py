"""
Verify MT19937 against a reference implementation
Sweeps a range of seeds and compares every draw with numpy's MT19937,
which is seeded through init_genrand exactly like mt19937ar.c

Usage: python verify_reference.py [number of seeds] [draws per seed]
"""

import sys
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from tqdm import tqdm

from mt19937 import MT19937, int_to_bits


@dataclass
class VerifyResult:
    seeds_checked: int
    draws_checked: int
    mismatch: Optional[Tuple[int, int, int, int]] = None  # (seed, n, expected, got)

    @property
    def ok(self):
        return self.mismatch is None


def reference_state(seed):
    """
    Seeded state of the reference generator
    RandomState(seed) runs init_genrand(seed); its key is the 624-word array
    with pos == 624, so the first draw twists.
    :param seed: 32-bit seed
    :return: list of 624 ints
    """
    _, key, pos, _, _ = np.random.RandomState(seed).get_state()
    if pos != MT19937.N:
        raise RuntimeError(f"Reference generator not freshly seeded: pos={pos}")
    return [int(w) for w in key]


def reference_generator(seed):
    """numpy MT19937 bit generator seeded through init_genrand(seed)."""
    bit_generator = np.random.MT19937()
    bit_generator.state = {
        'bit_generator': 'MT19937',
        'state': {
            'key': np.array(reference_state(seed), dtype=np.uint32),
            'pos': MT19937.N,
        },
    }
    return bit_generator


def reference_stream(seed, n):
    """
    First n genrand_int32 outputs of the reference generator
    :param seed: 32-bit seed
    :param n: number of draws
    :return: numpy uint32 array
    """
    return reference_generator(seed).random_raw(n).astype(np.uint32)


def find_mismatch(seed, n):
    """
    Compare the first n draws of MT19937(seed) with the reference
    :return: None, or (n, expected, got) for the first differing draw
    """
    expected = reference_stream(seed, n)
    got = np.array(MT19937(seed).generate_sequence(n), dtype=np.uint32)

    diff = np.flatnonzero(expected != got)
    if diff.size == 0:
        return None
    i = int(diff[0])
    return i, int(expected[i]), int(got[i])


def verify(seeds, n, passes=1, progress=False):
    """
    Differential check over a range of seeds
    :param seeds: iterable of seeds
    :param n: draws per seed
    :param passes: number of sweeps over the seeds
    :param progress: show a tqdm bar per pass
    :return: VerifyResult, stopping at the first mismatch
    """
    seeds = list(seeds)
    result = VerifyResult(seeds_checked=0, draws_checked=0)

    for p in range(passes):
        it = tqdm(seeds, desc=f"Pass {p + 1}/{passes}") if progress else seeds
        for s in it:
            found = find_mismatch(s, n)
            result.seeds_checked += 1
            if found is not None:
                result.mismatch = (s,) + found
                result.draws_checked += found[0] + 1
                return result
            result.draws_checked += n

    return result


def differing_bits(expected, got):
    """Bit positions (LSB = 0) where two 32-bit words differ."""
    return [i for i, bit in enumerate(int_to_bits(expected ^ got)) if bit]


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    PASSES = 2
    SEEDS = range(0, int(argv[0]) if argv else 5000)
    DRAWS = int(argv[1]) if len(argv) > 1 else 5000

    print("="*60)
    print("MT19937 REFERENCE VERIFICATION")
    print("="*60)
    print(f"Seeds:  {SEEDS.start} ... {SEEDS.stop - 1}")
    print(f"Draws:  {DRAWS} per seed")
    print(f"Passes: {PASSES}")
    print("="*60)

    result = verify(SEEDS, DRAWS, passes=PASSES, progress=True)

    if not result.ok:
        seed, n, expected, got = result.mismatch
        print(f"\nX ERROR seed={seed} n={n} expected {expected} got {got}")
        print(f"  Differing bits: {differing_bits(expected, got)}")
        return 1

    print(f"\nOK {result.seeds_checked} seeds, {result.draws_checked:,} draws match")
    return 0


if __name__ == "__main__":
    sys.exit(main())
