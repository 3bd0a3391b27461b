"""
Scan Runner
Feeds hostnames from the input stream through a fixed pool of worker
threads. Each worker resolves the name, checks the addresses against the
provider ranges and probes the host when one of them matches.
"""

import queue
import threading
from datetime import datetime
from typing import BinaryIO, Callable, Dict, Iterable, Iterator, List, Optional, TextIO, Union

import requests

from .core.output import ResultSink
from .core.ranges import RangeIndex
from .resolution.resolver import DnsResolver
from .vulns.cloudfront import CloudFrontProbe

# Marks the end of the channel; one is queued per worker
_CLOSED = object()


def read_hostnames(stream: Union[TextIO, BinaryIO]) -> Iterator[str]:
    """
    Yield one hostname per non-blank input line (no deduplication).

    Byte streams are decoded as UTF-8 line by line; undecodable bytes are
    replaced so one bad line never ends the run.
    """
    for line in stream:
        if isinstance(line, bytes):
            line = line.decode('utf-8', errors='replace')
        hostname = line.strip()
        if hostname:
            yield hostname


class WorkerPool:
    """
    Fixed-size thread pool over a bounded hostname queue.

    The queue holds at most `concurrency` pending hostnames, so the
    producer blocks while every worker is busy.
    """

    def __init__(self, index: RangeIndex, sink: ResultSink, concurrency: int = 20,
                 resolver: Optional[Callable[[str], List[str]]] = None,
                 probe: Optional[CloudFrontProbe] = None,
                 session_factory: Optional[Callable[[], requests.Session]] = None):
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

        self.index = index
        self.sink = sink
        self.concurrency = concurrency
        self.resolver = resolver if resolver is not None else DnsResolver()
        self.probe = probe if probe is not None else CloudFrontProbe()
        self.session_factory = session_factory or requests.Session

        self._lock = threading.Lock()
        self._stats = {}

    def run(self, hostnames: Iterable[str]) -> Dict:
        """
        Process every hostname and block until all workers are done.

        Returns:
            Result dict with counters for the run
        """
        start = datetime.now()
        self._stats = {'processed': 0, 'candidates': 0, 'probed': 0, 'findings': 0, 'errors': 0}
        channel = queue.Queue(maxsize=self.concurrency)

        workers = [
            threading.Thread(target=self._worker, args=(channel,), name=f"worker-{i}", daemon=True)
            for i in range(self.concurrency)
        ]
        for worker in workers:
            worker.start()

        submitted = 0
        try:
            for hostname in hostnames:
                channel.put(hostname)
                submitted += 1
        except BaseException:
            # Interrupted or failing source: drop pending hostnames and leave
            # without waiting on workers stuck in I/O (they are daemons)
            self._abandon(channel, len(workers))
            raise

        # Close the channel only once the source is drained
        for _ in workers:
            channel.put(_CLOSED)
        for worker in workers:
            worker.join()

        elapsed = (datetime.now() - start).total_seconds()

        return {
            'success': True,
            'submitted': submitted,
            **self._stats,
            'elapsed': elapsed
        }

    @staticmethod
    def _abandon(channel: queue.Queue, workers: int):
        while True:
            try:
                channel.get_nowait()
            except queue.Empty:
                break
        for _ in range(workers):
            try:
                channel.put_nowait(_CLOSED)
            except queue.Full:
                break

    def _worker(self, channel: queue.Queue):
        session = self.session_factory()
        try:
            while True:
                hostname = channel.get()
                if hostname is _CLOSED:
                    break
                self._count('processed')
                try:
                    self._process(hostname, session)
                except Exception as e:
                    self._count('errors')
                    self.sink.log(f"[!] Worker error on {hostname}: {e}", "magenta")
        finally:
            session.close()

    def _process(self, hostname: str, session: requests.Session):
        """Resolve, match and (at most once) probe a single hostname"""
        addresses = self.resolver(hostname)
        if not addresses:
            return

        matched = False
        for address in addresses:
            try:
                blocks = self.index.lookup(address)
            except ValueError:
                continue

            if blocks:
                matched = True
                prefixes = ', '.join(sorted(_describe(b) for b in blocks))
                self.sink.debug(f"[MATCH] {hostname} -> {address} ({prefixes})", "cyan")

        if not matched:
            return

        self._count('candidates')
        result = self.probe(hostname, session, self.sink)
        self._count('probed')

        if result.misconfigured:
            self._count('findings')
        elif result.error:
            self.sink.debug(f"[-] {result.url}: {result.error}", "yellow")

    def _count(self, key: str):
        with self._lock:
            self._stats[key] += 1


def _describe(block) -> str:
    details = '/'.join(part for part in (block.service, block.region) if part)
    return f"{block} {details}" if details else str(block)


def run_pool(concurrency: int, source: Iterable[str], index: RangeIndex,
             sink: ResultSink, **kwargs) -> Dict:
    """Run one pool over `source`; see WorkerPool for keyword arguments"""
    pool = WorkerPool(index, sink, concurrency=concurrency, **kwargs)
    return pool.run(source)
