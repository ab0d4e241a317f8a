"""
MT19937 throughput benchmark
Gives a general idea of generator speed, it is not a scientific benchmark.

Usage: python benchmark.py [number of iterations]
"""

import math
import sys
import time

import numpy as np
from tqdm import tqdm

from mt19937 import MT19937
from verify_reference import reference_generator


SHORT_SCALE = [
    "",
    "thousand",
    "million",
    "billion",
    "trillion",
    "quadrillion",
    "quintillion",
    "sextillion",
    "septillion",
]


def digits(n):
    """Number of digits in the integer part of n."""
    d = 1
    n = math.floor(n)
    while n / 10 ** d >= 1.0:
        d += 1
    return d


def sscale(n, decimals=1):
    """
    Human readable short-scale number
    12345 -> '12.3 thousand', 1234567 -> '1.2 million'
    :param n: number to format
    :param decimals: digits after the decimal point
    :return: formatted string
    """
    d = digits(n)
    exp = 0 if d <= 4 else 3 * ((d - 1) // 3)
    return f"{n / 10 ** exp:.{decimals}f} {SHORT_SCALE[exp // 3]}".rstrip()


def stream_hash(draw, iterations):
    """XOR of the next `iterations` draws, starting from 0xFFFFFFFF."""
    h = 0xFFFFFFFF
    for _ in range(iterations):
        h ^= draw()
    return h


def numbers_per_second(mt, count):
    """
    Time `count` draws from mt
    :return: draws per second
    """
    start = time.perf_counter()
    for _ in range(count):
        mt.next_u32()
    secs = time.perf_counter() - start
    print(f"Generating {sscale(count)} numbers... {secs:f} seconds")
    return count / secs


def estimate_calls_per_second(mt, run_secs=1.0, max_count=10000000):
    """Draw until run_secs have elapsed (checked every 10000 draws)."""
    count = 0
    start = time.perf_counter()

    while count < max_count:
        mt.next_u32()
        count += 1
        if count % 10000 == 0 and time.perf_counter() - start >= run_secs:
            break

    return count / (time.perf_counter() - start)


def mean(values):
    return float(np.mean(values))


def stddev(values):
    """Population standard deviation."""
    return float(np.std(values))


def run_batches(mt, count, part=40):
    """
    Time batches of draws: 10 small (count / 2part), 10 normal (count / part)
    and 10 big (2 count / part)
    :param mt: generator to draw from
    :param count: nominal number of draws, usually part * estimated speed
    :param part: batch divisor
    :return: (numbers per second of each batch, total draws, elapsed seconds)
    """
    sizes = [count // (2 * part)] * 10 + [count // part] * 10 + [2 * count // part] * 10

    persec = []
    start = time.perf_counter()
    for size in sizes:
        persec.append(numbers_per_second(mt, max(size, 1)))
    elapsed = time.perf_counter() - start

    return persec, sum(max(size, 1) for size in sizes), elapsed


def compare_with_reference(iterations, passes=3, seed=0):
    """
    Best-of-passes timing of MT19937 against numpy's MT19937
    Both streams are folded into an XOR hash, which must agree.
    :return: (our_secs, ref_secs)
    """
    our_best = ref_best = float("inf")

    for _ in tqdm(range(passes), desc="Benchmark"):
        start = time.perf_counter()
        ref_raw = reference_generator(seed).random_raw(iterations)
        ref_hash = 0xFFFFFFFF ^ int(np.bitwise_xor.reduce(ref_raw.astype(np.uint32)))
        elapsed = time.perf_counter() - start
        if elapsed < ref_best:
            ref_best = elapsed
            tqdm.write(f"  * {ref_best:9.7f} secs (numpy MT19937)")
        else:
            tqdm.write("  * no improvement (numpy MT19937)")

        start = time.perf_counter()
        our_hash = stream_hash(MT19937(seed).next_u32, iterations)
        elapsed = time.perf_counter() - start
        if elapsed < our_best:
            our_best = elapsed
            tqdm.write(f"  * {our_best:9.7f} secs (our mt)")
        else:
            tqdm.write("  * no improvement (our mt)")

        if our_hash != ref_hash:
            raise RuntimeError(f"Hashes do not match: {our_hash:#010x} != {ref_hash:#010x}")

    return our_best, ref_best


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    PART = 40
    PASSES = 3
    SEED = 5769

    print("="*60)
    print("MT19937 BENCHMARK")
    print("="*60)

    mt = MT19937(SEED)
    print("Priming system performance... ", end="")
    speed = estimate_calls_per_second(mt)
    print(f"ca. {sscale(speed, 2)} / second")

    # Without an explicit count, size the batches from the primed speed
    ITERATIONS = int(argv[0]) if argv else int(PART * speed)

    print(f"\nWill generate 30 batches of numbers from {sscale(ITERATIONS)}")
    print("Using wall-clock time (time.perf_counter)")
    print("="*60)

    persec, total, elapsed = run_batches(mt, ITERATIONS, part=PART)

    print("\nRESULTS\n")
    print(f"  Total numbers generated: {sscale(total, 2)}")
    print(f"  Total speed: {sscale(total / elapsed, 4)} numbers/second\n")
    print(f"  Worst performance: {sscale(min(persec), 4)} numbers/second")
    print(f"  Best performance:  {sscale(max(persec), 4)} numbers/second\n")
    print(f"  Mean performance:  {sscale(mean(persec), 4)} numbers/second")
    print(f"  Standard deviation: {sscale(stddev(persec), 4)}")

    bulk = MT19937(SEED)
    start = time.perf_counter()
    bulk.random_raw(ITERATIONS)
    print(f"\n  Bulk (numpy):      {sscale(ITERATIONS / (time.perf_counter() - start))} numbers/second")

    print("\nBenchmarking against reference implementation ... please wait")
    print(f"Will take the *best* times over {PASSES} runs for each")
    try:
        ours, ref = compare_with_reference(ITERATIONS, passes=PASSES)
    except RuntimeError as e:
        print(f"X {e}")
        return 1

    ratio = ref / ours
    print(f"  * {ratio:9.7f} x {'faster' if ratio > 1 else 'slower'} (higher is better)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
