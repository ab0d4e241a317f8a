"""
MT19937 (Mersenne Twister) Implementation
Seeding, batch twisting and tempered extraction, bit-identical to mt19937ar.c
"""

import threading

import numpy as np


DEFAULT_SEED = 5489
RAND_MAX = 0x7FFFFFFF


class MT19937:
    """
    Mersenne Twister MT19937 generator state
    Owns the 624-word state array and the draw cursor. Not thread safe:
    one instance must only be driven by one caller at a time (see SharedMT19937).
    """

    # MT19937 parameters
    W = 32  # word size (bits)
    N = 624  # degree of recurrence
    M = 397  # middle word offset
    R = 31  # separation point of one word
    A = 0x9908B0DF  # twist matrix parameter
    F = 0x6C078965  # seeding multiplier

    # Tempering parameters
    U = 11
    D = 0xFFFFFFFF
    S = 7
    B = 0x9D2C5680
    T = 15
    C = 0xEFC60000
    L = 18

    MASK = 0xFFFFFFFF
    LOWER_MASK = (1 << R) - 1  # 0x7FFFFFFF
    UPPER_MASK = (~LOWER_MASK) & 0xFFFFFFFF  # 0x80000000

    def __init__(self, seed=DEFAULT_SEED):
        """
        Initialize MT19937 with a seed
        :param seed: initialization seed (default: 5489)
        """
        self.mt = [0] * self.N  # state vector
        self.index = self.N  # index into state vector
        self.twist_count = 0
        self.seed(seed)

    def seed(self, s):
        """
        Initialize the generator from a seed
        :param s: seed value, reduced to 32 bits
        """
        mt = self.mt
        mt[0] = s & self.MASK
        for i in range(1, self.N):
            mt[i] = (self.F * (mt[i-1] ^ (mt[i-1] >> 30)) + i) & self.MASK
        self.index = self.N
        self.twist_count = 0

    def twist(self):
        """
        Generate the next N values from the series

        Same left-to-right pass as twist_words, split at the points where
        (i + M) and (i + 1) wrap so no modulo is needed. Words below N - M
        read the old mt[i + M]; the rest read words already rewritten in
        this pass.
        """
        mt = self.mt
        upper, lower, a = self.UPPER_MASK, self.LOWER_MASK, self.A
        n, m = self.N, self.M

        for i in range(n - m):
            y = (mt[i] & upper) | (mt[i+1] & lower)
            mt[i] = mt[i+m] ^ (y >> 1) ^ (a if y & 1 else 0)
        for i in range(n - m, n - 1):
            y = (mt[i] & upper) | (mt[i+1] & lower)
            mt[i] = mt[i+m-n] ^ (y >> 1) ^ (a if y & 1 else 0)
        y = (mt[n-1] & upper) | (mt[0] & lower)
        mt[n-1] = mt[m-1] ^ (y >> 1) ^ (a if y & 1 else 0)

        self.index = 0
        self.twist_count += 1

    @classmethod
    def temper(cls, y):
        """
        Tempering function: transforms internal state to output
        :param y: internal state value
        :return: tempered output value
        """
        y ^= (y >> cls.U) & cls.D
        y ^= (y << cls.S) & cls.B
        y ^= (y << cls.T) & cls.C
        y ^= y >> cls.L
        return y & cls.MASK

    def next_u32(self):
        """
        Extract a tempered value (standard MT19937 output)
        :return: 32-bit random number in [0, 0xFFFFFFFF]
        """
        if self.index >= self.N:
            self.twist()

        y = self.temper(self.mt[self.index])
        self.index += 1

        return y

    def next_i31(self):
        """Draw one word and drop its most significant bit: [0, 0x7FFFFFFF]."""
        return self.next_u32() & RAND_MAX

    def extract_with_internal(self):
        """
        Extract both internal state and tempered output
        :return: (internal_state, tempered_output) tuple
        """
        if self.index >= self.N:
            self.twist()

        y_internal = self.mt[self.index]
        y_tempered = self.temper(y_internal)
        self.index += 1

        return y_internal, y_tempered

    def generate_sequence(self, n):
        """
        Generate n random numbers
        :param n: number of values to generate
        :return: list of n random numbers
        """
        return [self.next_u32() for _ in range(n)]

    def random_raw(self, n):
        """
        Generate n random numbers as a uint32 array

        Whole batches are twisted with twist_array and tempered with
        temper_array. The stream and the generator state afterwards are the
        same as for generate_sequence(n).
        :param n: number of values to generate
        :return: numpy uint32 array of shape (n,)
        """
        out = np.empty(max(n, 0), dtype=np.uint32)
        words = np.array(self.mt, dtype=np.uint32)
        filled = 0

        while filled < n:
            if self.index >= self.N:
                twist_array(words)
                self.mt = words.tolist()
                self.index = 0
                self.twist_count += 1

            take = min(n - filled, self.N - self.index)
            out[filled:filled+take] = temper_array(words[self.index:self.index+take])
            self.index += take
            filled += take

        return out

    def get_state(self):
        """
        Get current internal state
        :return: (copy of state array, index)
        """
        return self.mt.copy(), self.index

    def set_state(self, state, index=N):
        """
        Set internal state
        :param state: state array (624 values)
        :param index: cursor into the state array (default: 624, twist on next draw)
        """
        if len(state) != self.N:
            raise ValueError(f"State must have {self.N} elements, got {len(state)}")
        words = [int(w) for w in state]
        if any(w < 0 or w > self.MASK for w in words):
            raise ValueError("State words must be unsigned 32-bit integers")
        if not 0 <= index <= self.N:
            raise ValueError(f"Index must be in [0, {self.N}], got {index}")
        self.mt = words
        self.index = index


def seed(value):
    """Return a new generator seeded with value."""
    return MT19937(value)


def twist(state):
    """
    Regenerate all 624 words of a generator in place
    :param state: MT19937 instance
    """
    state.twist()


def next_u32(state):
    """
    Draw one tempered word
    :param state: MT19937 instance, advanced by one draw
    :return: 32-bit random number
    """
    return state.next_u32()


def next_i31(state):
    """
    Draw one word without its most significant bit
    :param state: MT19937 instance, advanced by one draw
    :return: random number in [0, RAND_MAX]
    """
    return state.next_i31()


def twist_words(words):
    """
    Naive left-to-right twist of a 624-word list, in place
    Every index is reduced modulo N; kept as the plain form of the recurrence
    that MT19937.twist and twist_array must reproduce.
    :param words: list of 624 unsigned 32-bit integers
    """
    n, m = MT19937.N, MT19937.M
    for i in range(n):
        y = (words[i] & MT19937.UPPER_MASK) | (words[(i + 1) % n] & MT19937.LOWER_MASK)
        nxt = words[(i + m) % n] ^ (y >> 1)
        if y & 1:
            nxt ^= MT19937.A
        words[i] = nxt


_UPPER = np.uint32(MT19937.UPPER_MASK)
_LOWER = np.uint32(MT19937.LOWER_MASK)
_MATRIX_A = np.uint32(MT19937.A)
_ZERO = np.uint32(0)
_ONE = np.uint32(1)


def _twist_block(words, lo, hi, src_lo):
    # words[lo:hi] from words[lo:hi], words[lo+1:hi+1] and words[src_lo:src_lo+hi-lo]
    y = (words[lo:hi] & _UPPER) | (words[lo+1:hi+1] & _LOWER)
    mag = np.where((y & _ONE).astype(bool), _MATRIX_A, _ZERO)
    words[lo:hi] = words[src_lo:src_lo+hi-lo] ^ (y >> _ONE) ^ mag


def twist_array(words):
    """
    Block-vectorised twist of a uint32 array, in place

    The pass is cut into slices inside which no element reads a value
    written by the same slice:
      [0, 227)   reads the old words[397:624]
      [227, 454) reads words[0:227], rewritten by the first slice
      [454, 623) reads words[227:396], rewritten by the second slice
      623        reads the new words[0] and words[396]
    :param words: numpy uint32 array of shape (624,)
    :return: words
    """
    n, m = MT19937.N, MT19937.M
    nm = n - m  # 227

    _twist_block(words, 0, nm, m)
    _twist_block(words, nm, 2 * nm, 0)
    _twist_block(words, 2 * nm, n - 1, nm)

    y = (words[n-1] & _UPPER) | (words[0] & _LOWER)
    words[n-1] = words[m-1] ^ (y >> _ONE) ^ (_MATRIX_A if y & _ONE else _ZERO)
    return words


def temper_array(words):
    """Tempering applied to every element of a uint32 array; returns a new array."""
    y = words.astype(np.uint32, copy=True)
    y ^= y >> np.uint32(MT19937.U)
    y ^= (y << np.uint32(MT19937.S)) & np.uint32(MT19937.B)
    y ^= (y << np.uint32(MT19937.T)) & np.uint32(MT19937.C)
    y ^= y >> np.uint32(MT19937.L)
    return y


class SharedMT19937:
    """
    MT19937 guarded by a lock
    Every seed and draw holds the lock for its whole duration, so one instance
    can be shared between threads.
    """

    def __init__(self, seed=DEFAULT_SEED):
        self._lock = threading.Lock()
        self._mt = MT19937(seed)

    def seed(self, s):
        with self._lock:
            self._mt.seed(s)

    def next_u32(self):
        with self._lock:
            return self._mt.next_u32()

    def next_i31(self):
        with self._lock:
            return self._mt.next_i31()

    def generate_sequence(self, n):
        with self._lock:
            return self._mt.generate_sequence(n)

    def get_state(self):
        with self._lock:
            return self._mt.get_state()


# Process-wide default generator behind the libc-style functions below
_default = SharedMT19937(DEFAULT_SEED)


def srand(s):
    """Reseed the process-wide default generator."""
    _default.seed(s)


initialize = srand


def rand_u32():
    """Draw from the process-wide default generator: [0, 0xFFFFFFFF]."""
    return _default.next_u32()


def rand():
    """Draw from the process-wide default generator: [0, RAND_MAX]."""
    return _default.next_i31()


def int_to_bits(value, num_bits=32):
    """
    Convert integer to bit array
    :param value: integer value
    :param num_bits: number of bits (default 32)
    :return: list of bits [b0, b1, ..., b31] (LSB first)
    """
    return [(value >> i) & 1 for i in range(num_bits)]


def bits_to_int(bits):
    """
    Convert bit array to integer
    :param bits: list of bits (LSB first)
    :return: integer value
    """
    return sum(bit << i for i, bit in enumerate(bits))


if __name__ == "__main__":
    print("Testing MT19937 implementation...")

    mt = MT19937(seed=DEFAULT_SEED)

    print("\nFirst 10 numbers:")
    for i in range(10):
        internal, output = mt.extract_with_internal()
        print(f"{i}: Internal={internal:010} ({internal:032b})")
        print(f"   Output  ={output:010} ({output:032b})")

    # First 5 values of mt19937ar.c with init_genrand(5489)
    print("\nComparing first 5 values with reference MT19937:")
    mt2 = MT19937(seed=DEFAULT_SEED)
    reference = [3499211612, 581869302, 3890346734, 3586334585, 545404204]
    for i, ref in enumerate(reference):
        val = mt2.next_u32()
        match = "OK" if val == ref else "FAIL"
        print(f"{i}: Generated={val:010}, Reference={ref:010} {match}")
