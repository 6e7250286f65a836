import time
import threading
import random
from dataclasses import dataclass
from statistics import mean

from wirekv.db.keyValueStore import KeyValueStore

# Config
NUM_THREADS = 4
OPS_PER_THREAD = 10_000


@dataclass
class BenchmarkResult:
    name: str
    total_ops: int
    duration: float
    avg_latency: float
    p95_latency: float

    @property
    def throughput(self) -> float:
        return self.total_ops / self.duration if self.duration else 0.0


def make_key(thread_id, i) -> bytes:
    return f"key-{thread_id}-{i}".encode()


def benchmark_set(db, ops, thread_id, latencies):
    for i in range(ops):
        key = make_key(thread_id, i)
        start = time.perf_counter()
        db.set(key, str(i).encode())
        latencies.append(time.perf_counter() - start)


def benchmark_get(db, ops, thread_id, latencies):
    for _ in range(ops):
        key = make_key(thread_id, random.randrange(ops))
        start = time.perf_counter()
        db.get(key)
        latencies.append(time.perf_counter() - start)


def benchmark_delete(db, ops, thread_id, latencies):
    for i in range(ops):
        key = make_key(thread_id, i)
        start = time.perf_counter()
        db.delete(key)
        latencies.append(time.perf_counter() - start)


# Runner
def run_benchmark(name, target, *args, num_threads=NUM_THREADS, verbose=True):
    latencies = []
    threads = []

    start_time = time.perf_counter()

    for thread_id in range(num_threads):
        t = threading.Thread(target=target, args=(*args, thread_id, latencies))
        threads.append(t)
        t.start()

    for t in threads:
        t.join()

    duration = time.perf_counter() - start_time

    if not latencies:
        if verbose:
            print(f"\n=== {name} ===\nNo operations completed.")
        return None

    total_ops = len(latencies)
    result = BenchmarkResult(
        name=name,
        total_ops=total_ops,
        duration=duration,
        avg_latency=mean(latencies),
        p95_latency=sorted(latencies)[int(0.95 * total_ops)],
    )

    if verbose:
        print(f"\n=== {name} ===")
        print(f"Total ops: {result.total_ops}")
        print(f"Total time: {result.duration:.2f}s")
        print(f"Throughput: {result.throughput:,.0f} ops/sec")
        print(f"Avg latency: {result.avg_latency * 1e6:.2f} µs")
        print(f"P95 latency: {result.p95_latency * 1e6:.2f} µs")
    return result


def main(num_threads=NUM_THREADS, ops_per_thread=OPS_PER_THREAD):
    print("=" * 60)
    print("WireKV Store Benchmark")
    print("=" * 60)
    print(f"Threads: {num_threads}")
    print(f"Operations per thread: {ops_per_thread:,}")
    print(f"Total operations per benchmark: {num_threads * ops_per_thread:,}")
    print("=" * 60)

    db = KeyValueStore()
    results = [
        run_benchmark("SET benchmark", benchmark_set, db, ops_per_thread, num_threads=num_threads),
        run_benchmark("GET benchmark", benchmark_get, db, ops_per_thread, num_threads=num_threads),
        run_benchmark("DEL benchmark", benchmark_delete, db, ops_per_thread, num_threads=num_threads),
    ]

    print("\n" + "=" * 60)
    print("Benchmark Complete!")
    print("=" * 60)
    return results


if __name__ == "__main__":
    main()
