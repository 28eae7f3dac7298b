"""Micro-benchmark for scalar vs numpy quadkey packing.

Intended for quick local comparisons when changing the bit-packing loops.

Examples:
  python scripts/bench_codec.py --count 100000 --zoom 18
  BINQUADKEY_BATCH_SIZE=4096 python scripts/bench_codec.py --iters 5
"""

from __future__ import annotations

import argparse
import random
import statistics
import time

import numpy as np

from binquadkey import Quadkey
from binquadkey.core.batch import decode_tiles, encode_tiles


def _percentile_ms(values_s: list[float], p: float) -> float:
    if not values_s:
        return 0.0
    xs = sorted(values_s)
    # Nearest-rank
    k = int(round((p / 100.0) * (len(xs) - 1)))
    k = max(0, min(k, len(xs) - 1))
    return xs[k] * 1000.0


def _make_tiles(count: int, zoom: int, seed: int) -> tuple[list[int], list[int]]:
    rng = random.Random(seed)
    limit = 1 << zoom
    xs = [rng.randrange(limit) for _ in range(count)]
    ys = [rng.randrange(limit) for _ in range(count)]
    return xs, ys


def _time(fn, iters: int) -> list[float]:
    samples: list[float] = []
    for _ in range(iters):
        t0 = time.perf_counter()
        fn()
        samples.append(time.perf_counter() - t0)
    return samples


def _report(label: str, samples: list[float], count: int) -> None:
    mean_s = statistics.mean(samples)
    rate = count / mean_s if mean_s else 0.0
    print(
        f"{label:<16} mean={mean_s * 1000.0:8.2f}ms "
        f"p50={_percentile_ms(samples, 50):8.2f}ms "
        f"p95={_percentile_ms(samples, 95):8.2f}ms "
        f"rate={rate:,.0f} keys/s"
    )


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--count", type=int, default=50_000)
    parser.add_argument("--zoom", type=int, default=16)
    parser.add_argument("--iters", type=int, default=3)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    xs, ys = _make_tiles(args.count, args.zoom, args.seed)
    x_arr = np.asarray(xs, dtype=np.int64)
    y_arr = np.asarray(ys, dtype=np.int64)
    packed = encode_tiles(x_arr, y_arr, args.zoom)

    print(f"{args.count} tiles at zoom {args.zoom}, {args.iters} iterations")
    _report(
        "scalar encode",
        _time(lambda: [Quadkey.from_tile_xy(x, y, args.zoom) for x, y in zip(xs, ys)], args.iters),
        args.count,
    )
    _report("numpy encode", _time(lambda: encode_tiles(x_arr, y_arr, args.zoom), args.iters), args.count)
    _report(
        "scalar decode",
        _time(lambda: [Quadkey.from_packed(v).tile() for v in packed.tolist()], args.iters),
        args.count,
    )
    _report("numpy decode", _time(lambda: decode_tiles(packed), args.iters), args.count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
