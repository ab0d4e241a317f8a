"""Tests for the MT19937 generator state machine."""

import numpy as np
import pytest

import mt19937
from mt19937 import (
    MT19937,
    RAND_MAX,
    bits_to_int,
    int_to_bits,
    temper_array,
    twist_array,
    twist_words,
)
from verify_reference import reference_state, reference_stream, verify


# init_genrand(5489) + genrand_int32, first five outputs
REFERENCE_5489 = [3499211612, 581869302, 3890346734, 3586334585, 545404204]


def test_default_seed_reference_vector():
    mt = MT19937()
    assert mt.generate_sequence(5) == REFERENCE_5489
    assert REFERENCE_5489[0] == 0xD091BB5C


def test_default_seed_ten_thousandth_draw():
    # Value required of std::mt19937 by the C++ standard
    mt = MT19937(5489)
    assert mt.generate_sequence(10000)[-1] == 4123659995


def test_seed_zero():
    mt = MT19937(0)
    values = mt.generate_sequence(1000)
    assert values[0] == 2357136044
    assert values == reference_stream(0, 1000).tolist()


def test_seed_max():
    mt = MT19937(0xFFFFFFFF)
    values = mt.generate_sequence(1000)
    assert values == reference_stream(0xFFFFFFFF, 1000).tolist()
    assert values == MT19937(0xFFFFFFFF).generate_sequence(1000)


@pytest.mark.parametrize("s", [0, 1, 42, 5489, 0x7FFFFFFF, 0x80000000, 0xFFFFFFFF])
def test_seeded_state_matches_reference(s):
    mt = MT19937(s)
    words, index = mt.get_state()
    assert words == reference_state(s)
    assert index == MT19937.N


def test_seed_is_reduced_to_32_bits():
    assert MT19937(2**32 + 7).generate_sequence(10) == MT19937(7).generate_sequence(10)
    assert MT19937(-1).generate_sequence(10) == MT19937(0xFFFFFFFF).generate_sequence(10)


def test_determinism():
    a = MT19937(1234)
    b = MT19937(1234)
    assert a.generate_sequence(3000) == b.generate_sequence(3000)


def test_reseed_restarts_stream():
    mt = MT19937(99)
    first = mt.generate_sequence(700)
    mt.seed(99)
    assert mt.generate_sequence(700) == first


def test_differential_seed_sweep():
    result = verify(range(0, 100), 1500)
    assert result.ok, result.mismatch
    assert result.seeds_checked == 100
    assert result.draws_checked == 100 * 1500


def test_differential_sparse_seeds():
    seeds = [0x12345678, 0xDEADBEEF, 0xCAFEBABE, 2**31 - 1, 2**31, 2**32 - 2]
    result = verify(seeds, 2000)
    assert result.ok, result.mismatch


@pytest.mark.parametrize("s", [0, 17, 0xFFFFFFFF])
def test_twist_cadence(s):
    mt = MT19937(s)
    assert mt.twist_count == 0

    mt.next_u32()
    assert mt.twist_count == 1
    for _ in range(MT19937.N - 1):
        mt.next_u32()
    assert mt.twist_count == 1
    assert mt.index == MT19937.N

    mt.next_u32()
    assert mt.twist_count == 2
    assert mt.index == 1


def test_cadence_depends_only_on_draw_count():
    for s in (3, 1000, 0xABCDEF01):
        mt = MT19937(s)
        mt.generate_sequence(624 * 5 + 1)
        assert mt.twist_count == 6


def test_twist_resets_cursor():
    mt = MT19937(8)
    mt.generate_sequence(10)
    mt.twist()
    assert mt.index == 0


def _random_words(seed):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 2**32, size=MT19937.N, dtype=np.uint64).tolist()


@pytest.mark.parametrize("words", [
    MT19937(0).get_state()[0],
    MT19937(5489).get_state()[0],
    [0] * MT19937.N,
    [0xFFFFFFFF] * MT19937.N,
    _random_words(1),
    _random_words(2),
])
def test_twist_forms_agree(words):
    naive = list(words)
    twist_words(naive)

    mt = MT19937()
    mt.set_state(words)
    mt.twist()
    assert mt.mt == naive

    arr = np.array(words, dtype=np.uint32)
    twist_array(arr)
    assert arr.tolist() == naive


def test_twist_reads_rewritten_words():
    # words[623] depends on the rewritten words[0]
    words = MT19937(1).get_state()[0]
    twisted = list(words)
    twist_words(twisted)

    y = (words[623] & MT19937.UPPER_MASK) | (twisted[0] & MT19937.LOWER_MASK)
    expected = twisted[396] ^ (y >> 1) ^ (MT19937.A if y & 1 else 0)
    assert twisted[623] == expected


def test_temper():
    assert MT19937.temper(0) == 0
    words = MT19937(5489).get_state()[0]
    tempered = temper_array(np.array(words, dtype=np.uint32)).tolist()
    assert tempered == [MT19937.temper(w) for w in words]
    assert all(0 <= t <= 0xFFFFFFFF for t in tempered)


def test_random_raw_matches_scalar_path():
    a = MT19937(321)
    b = MT19937(321)
    raw = a.random_raw(2000)
    assert raw.dtype == np.uint32
    assert raw.tolist() == b.generate_sequence(2000)
    assert a.get_state() == b.get_state()
    assert a.twist_count == b.twist_count
    assert a.next_u32() == b.next_u32()


def test_random_raw_after_partial_batch():
    a = MT19937(77)
    b = MT19937(77)
    a.generate_sequence(100)
    b.generate_sequence(100)
    assert a.random_raw(624).tolist() == b.generate_sequence(624)
    assert a.random_raw(0).size == 0
    assert a.get_state() == b.get_state()


def test_extract_with_internal():
    mt = MT19937(5489)
    internal, tempered = mt.extract_with_internal()
    assert tempered == REFERENCE_5489[0]
    assert MT19937.temper(internal) == tempered
    assert internal == mt.mt[0]


def test_next_u32_range():
    mt = MT19937(0xFFFFFFFF)
    assert all(0 <= v <= 0xFFFFFFFF for v in mt.generate_sequence(5000))


def test_next_i31_masks_top_bit_and_consumes_one_word():
    a = MT19937(2024)
    b = MT19937(2024)
    for _ in range(2000):
        v = a.next_i31()
        assert 0 <= v <= RAND_MAX
        assert v == b.next_u32() & 0x7FFFFFFF
    assert a.get_state() == b.get_state()


def test_get_set_state_resumes_stream():
    mt = MT19937(55)
    mt.generate_sequence(300)
    words, index = mt.get_state()
    expected = mt.generate_sequence(1000)

    other = MT19937(0)
    other.set_state(words, index)
    assert other.generate_sequence(1000) == expected


def test_get_state_returns_copy():
    mt = MT19937(1)
    words, _ = mt.get_state()
    words[0] ^= 1
    assert mt.mt[0] != words[0]


def test_set_state_rejects_bad_input():
    mt = MT19937()
    with pytest.raises(ValueError):
        mt.set_state([0] * 623)
    with pytest.raises(ValueError):
        mt.set_state([0] * 623 + [2**32])
    with pytest.raises(ValueError):
        mt.set_state([0] * 623 + [-1])
    with pytest.raises(ValueError):
        mt.set_state([0] * 624, index=625)


def test_functional_api():
    state = mt19937.seed(5489)
    assert mt19937.next_u32(state) == REFERENCE_5489[0]
    assert mt19937.next_i31(state) == REFERENCE_5489[1] & 0x7FFFFFFF

    state = mt19937.seed(6)
    mt19937.twist(state)
    assert state.index == 0
    assert state.twist_count == 1


def test_bit_helpers():
    assert int_to_bits(1)[:2] == [1, 0]
    assert int_to_bits(0x80000000)[31] == 1
    assert bits_to_int(int_to_bits(0xDEADBEEF)) == 0xDEADBEEF


def test_negative_count_draws_nothing():
    mt = MT19937(4)
    assert mt.generate_sequence(-1) == []
    raw = mt.random_raw(-1)
    assert raw.size == 0
    assert raw.dtype == np.uint32
    assert mt.get_state() == MT19937(4).get_state()
