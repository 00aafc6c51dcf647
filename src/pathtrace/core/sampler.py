"""Per-pixel pseudo-random streams for Monte Carlo sampling.

Every pixel task of a scanline owns one generator slot, seeded from a global
seed and the pixel's flat index. Because no two concurrently running pixels
share a slot, the sequence of draws seen by a pixel does not depend on how
Taichi schedules the parallel loop, and a render is reproducible for a given
seed on any backend.

The generator is xorshift32; seeds are scrambled with the Wang integer hash so
that neighbouring pixels start from unrelated states.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.core.sampler import next_float, seed_stream
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     seed_stream(0, 7, 0)
    ...     return next_float(0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

# One slot per pixel column of the scanline being rendered
MAX_STREAMS = 4096

# Upper bound on host-side draws returned by sample_uniform()
MAX_HOST_SAMPLES = 65536

# Seeds are passed to kernels as i32
MAX_SEED = 2**31 - 1

# Replacement state for the (unlikely) case where hashing yields zero,
# which is a fixed point of xorshift
_NONZERO_STATE = 0x6D2B79F5

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)
_host_samples = ti.field(dtype=ti.f32, shape=MAX_HOST_SAMPLES)


@ti.func
def _wang_hash(x: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer (Thomas Wang's hash)."""
    x = (x ^ ti.u32(61)) ^ (x >> ti.u32(16))
    x = x * ti.u32(9)
    x = x ^ (x >> ti.u32(4))
    x = x * ti.u32(0x27D4EB2D)
    x = x ^ (x >> ti.u32(15))
    return x


@ti.func
def seed_stream(stream: ti.i32, seed: ti.i32, pixel_index: ti.i32):
    """Seed a generator slot for one pixel task.

    Args:
        stream: The slot to seed (usually the pixel's column index).
        seed: The global render seed.
        pixel_index: Flat index of the pixel (j * width + i).
    """
    state = _wang_hash(ti.cast(seed, ti.u32))
    state = _wang_hash(state ^ ti.cast(pixel_index, ti.u32))
    if state == ti.u32(0):
        state = ti.u32(_NONZERO_STATE)
    _rng_states[stream] = state


@ti.func
def next_float(stream: ti.i32) -> ti.f32:
    """Advance a slot and return a uniform float in [0, 1).

    The top 24 bits of the state are used so the conversion to f32 is exact
    and the result can never round up to 1.0.

    Args:
        stream: The generator slot owned by the calling pixel task.

    Returns:
        A uniformly distributed value in [0, 1).
    """
    x = _rng_states[stream]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_states[stream] = x
    return ti.cast(x >> ti.u32(8), ti.f32) * (1.0 / 16777216.0)


# =============================================================================
# Host-side access (inspection and tests)
# =============================================================================


@ti.kernel
def _seed_stream_kernel(stream: ti.i32, seed: ti.i32, pixel_index: ti.i32):
    seed_stream(stream, seed, pixel_index)


@ti.kernel
def _draw_kernel(stream: ti.i32, count: ti.i32):
    ti.loop_config(serialize=True)
    for k in range(count):
        _host_samples[k] = next_float(stream)


def _check_stream(stream: int) -> None:
    if stream < 0 or stream >= MAX_STREAMS:
        raise ValueError(f"Stream {stream} is outside [0, {MAX_STREAMS})")


def check_seed(seed: int) -> None:
    """Validate a render seed.

    Raises:
        ValueError: If the seed does not fit in a non-negative i32.
    """
    if seed < 0 or seed > MAX_SEED:
        raise ValueError(f"Seed {seed} is outside [0, {MAX_SEED}]")


def seed_stream_host(stream: int, seed: int, pixel_index: int) -> None:
    """Seed a generator slot from Python.

    Args:
        stream: The slot to seed.
        seed: The global seed.
        pixel_index: Flat pixel index mixed into the seed.

    Raises:
        ValueError: If stream or seed is out of range.
    """
    _check_stream(stream)
    check_seed(seed)
    _seed_stream_kernel(stream, seed, pixel_index)


def sample_uniform(stream: int, count: int) -> npt.NDArray[np.float32]:
    """Draw ``count`` consecutive values from a slot.

    Args:
        stream: The slot to draw from (seed it first).
        count: Number of values, at most MAX_HOST_SAMPLES.

    Returns:
        Array of shape (count,) with values in [0, 1).

    Raises:
        ValueError: If stream or count is out of range.
    """
    _check_stream(stream)
    if count < 0 or count > MAX_HOST_SAMPLES:
        raise ValueError(f"Sample count {count} is outside [0, {MAX_HOST_SAMPLES}]")
    _draw_kernel(stream, count)
    return _host_samples.to_numpy()[:count].copy()
