#!/usr/bin/env python3
"""Benchmark suite for flatmap comparing scan limits against pure bisection."""

import argparse
import json
import random
import time
from pathlib import Path
from typing import Dict, List

import numpy as np
import plotly.graph_objects as go
from tqdm import tqdm

from flatmap import Map, keep_left
from flatmap.locator import bisect_locate, locate


class Metrics:
    def __init__(self):
        self.insert_latencies: List[float] = []
        self.lookup_latencies: List[float] = []
        self.merge_times: List[float] = []

    def to_dict(self) -> Dict:
        return {
            "insert_latencies": {
                "p50": np.percentile(self.insert_latencies, 50),
                "p95": np.percentile(self.insert_latencies, 95),
                "p99": np.percentile(self.insert_latencies, 99),
            },
            "lookup_latencies": {
                "p50": np.percentile(self.lookup_latencies, 50),
                "p95": np.percentile(self.lookup_latencies, 95),
                "p99": np.percentile(self.lookup_latencies, 99),
            },
            "merge_avg_time": np.mean(self.merge_times) if self.merge_times else 0.0,
        }


def plot_latencies(results: Dict[str, Metrics], title: str, output_path: Path):
    fig = go.Figure()
    for name, metrics in results.items():
        fig.add_trace(go.Box(
            y=metrics.lookup_latencies,
            name=f"{name} lookup",
            boxpoints="outliers"
        ))
        fig.add_trace(go.Box(
            y=metrics.insert_latencies,
            name=f"{name} insert",
            boxpoints="outliers"
        ))

    fig.update_layout(
        title=title,
        yaxis_title="Latency (µs)",
        boxmode="group"
    )

    fig.write_html(output_path)


class BenchmarkSuite:
    def __init__(self, num_entries: int, rounds: int, seed: int):
        rng = random.Random(seed)
        self.num_entries = num_entries
        self.rounds = rounds
        self._keys = rng.sample(range(num_entries * 10), num_entries)
        self._probes = [rng.randrange(num_entries * 10) for _ in range(rounds)]

    def run_map_benchmark(self, scan_limit: int) -> Metrics:
        metrics = Metrics()
        for _ in tqdm(range(self.rounds // max(1, self.num_entries) + 1), desc=f"Map insert (scan={scan_limit})"):
            m = Map(scan_limit=scan_limit)
            for key in self._keys:
                start = time.perf_counter()
                m.insert(key, key)
                metrics.insert_latencies.append((time.perf_counter() - start) * 1e6)

        for key in tqdm(self._probes, desc=f"Map lookup (scan={scan_limit})"):
            start = time.perf_counter()
            m.get(key)
            metrics.lookup_latencies.append((time.perf_counter() - start) * 1e6)

        other = Map((k + 1, k) for k in self._keys)
        for _ in range(10):
            left = m.copy()
            start = time.perf_counter()
            left.merge_with(other, keep_left)
            metrics.merge_times.append((time.perf_counter() - start) * 1e3)
        return metrics

    def run_locator_benchmark(self) -> Dict[str, float]:
        """Raw locator cost per probe (µs) against the reference bisection."""
        fields = Map((k, None) for k in self._keys)._buffer.fields
        timings = {}
        start = time.perf_counter()
        for key in self._probes:
            bisect_locate(fields, key)
        timings["bisect"] = (time.perf_counter() - start) * 1e6 / len(self._probes)
        for scan_limit in (4, 8, 16, 32):
            start = time.perf_counter()
            for key in self._probes:
                locate(fields, key, scan_limit)
            timings[f"hybrid_{scan_limit}"] = (time.perf_counter() - start) * 1e6 / len(self._probes)
        return timings


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--size", type=int, default=256, help="Number of entries")
    parser.add_argument("--rounds", type=int, default=100000, help="Number of lookups")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument("--output", type=Path, default=Path("benchmark_results"), help="Output directory")
    args = parser.parse_args()

    args.output.mkdir(parents=True, exist_ok=True)

    suite = BenchmarkSuite(args.size, args.rounds, args.seed)
    results = {
        "bisect": suite.run_map_benchmark(scan_limit=0),
        "hybrid": suite.run_map_benchmark(scan_limit=8),
    }
    locator = suite.run_locator_benchmark()

    plot_latencies(results, "flatmap Latency Distribution", args.output / "flatmap_latencies.html")

    with open(args.output / "metrics.json", "w") as f:
        json.dump({
            **{name: metrics.to_dict() for name, metrics in results.items()},
            "locator_us_per_probe": locator,
        }, f, indent=2)


if __name__ == "__main__":
    main()
