"""
frontcheck - CloudFront origin misconfiguration checker

Reads hostnames from stdin, keeps those resolving into AWS IP space and
reports the ones answering with CloudFront's "Bad request" 403.

Usage:
    cat subdomains.txt | frontcheck [-c 20] [-v]
    cat subdomains.txt | frontcheck --service CLOUDFRONT -t 5
    cat subdomains.txt | frontcheck --ranges-file ip-ranges.json
    frontcheck --write-config config.json
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .core.config import ConfigManager
from .core.feed import FeedError, fetch_prefixes, filter_services, load_prefixes_file
from .core.output import ResultSink
from .core.ranges import RangeIndex
from .resolution.resolver import DnsResolver
from .runner import WorkerPool, read_hostnames
from .vulns.cloudfront import CloudFrontProbe


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog='frontcheck',
        description="Find hostnames on AWS IP space with a misconfigured CloudFront origin",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cat hosts.txt | %(prog)s
  cat hosts.txt | %(prog)s -c 50 -v
  cat hosts.txt | %(prog)s --service CLOUDFRONT --timeout 5
        """
    )

    parser.add_argument(
        '-c', '--concurrency',
        type=int,
        default=None,
        help='Set the concurrency level (default: 20)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        default=None,
        help='Show every probe as url,status and the matching IP ranges'
    )

    parser.add_argument(
        '-t', '--timeout',
        type=float,
        default=None,
        help='Per-request DNS/HTTP timeout in seconds, 0 to wait forever (default: 10)'
    )

    parser.add_argument(
        '--config',
        default=None,
        help='Path to config.json (optional, uses defaults if not provided)'
    )

    parser.add_argument(
        '--ranges-url',
        default=None,
        help='Provider ip-ranges.json URL (default: AWS)'
    )

    parser.add_argument(
        '--ranges-file',
        default=None,
        help='Use a saved ip-ranges.json or CIDR list instead of downloading'
    )

    parser.add_argument(
        '--service',
        action='append',
        default=None,
        metavar='NAME',
        help='Only use ranges for this AWS service (repeatable, e.g. CLOUDFRONT)'
    )

    parser.add_argument(
        '--write-config',
        metavar='PATH',
        default=None,
        help='Write the default configuration to PATH and exit'
    )

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ConfigManager:
    """Load config file and apply command line overrides"""
    config = ConfigManager(args.config)

    overrides = [
        (('scan', 'concurrency'), args.concurrency),
        (('scan', 'verbose'), args.verbose),
        (('scan', 'timeout'), args.timeout),
        (('provider', 'ranges_url'), args.ranges_url),
        (('provider', 'ranges_file'), args.ranges_file),
        (('provider', 'services'), args.service),
    ]
    for keys, value in overrides:
        if value is not None:
            config.set(*keys, value=value)

    return config


def build_index(config: ConfigManager, sink: ResultSink) -> RangeIndex:
    """
    Fetch the provider ranges and build the shared index.

    Raises:
        FeedError: if no usable ranges could be loaded
    """
    ranges_file = config.get('provider', 'ranges_file')

    if ranges_file:
        sink.debug(f"[RANGES] Loading {ranges_file}")
        entries = load_prefixes_file(ranges_file)
    else:
        url = config.get('provider', 'ranges_url')
        sink.debug(f"[RANGES] Fetching {url}")
        entries = fetch_prefixes(url, timeout=config.get('provider', 'timeout', default=30))

    services = config.get('provider', 'services') or []
    entries = filter_services(entries, services)

    index = RangeIndex.build(entries, log=lambda msg: sink.log(msg, "yellow"))
    if not len(index):
        if services:
            raise FeedError(f"No ranges left after service filter: {', '.join(services)}")
        raise FeedError("Provider range list is empty")

    sink.debug(f"[RANGES] Loaded {len(index)} prefixes")
    return index


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    if args.write_config:
        ConfigManager().save_template(args.write_config)
        return 0

    try:
        config = load_config(args)
        run_config = config.run_config()
    except (FileNotFoundError, ValueError) as e:
        print(f"[FATAL] {e}", file=sys.stderr)
        return 1

    sink = ResultSink(sys.stdout, verbose=run_config.verbose, err_stream=sys.stderr)

    try:
        index = build_index(config, sink)
    except FeedError as e:
        sink.log(f"[FATAL] Error fetching AWS prefixes: {e}", "red")
        return 1

    resolver = DnsResolver(
        nameservers=config.get('dns', 'nameservers'),
        timeout=run_config.timeout,
        record_types=config.get('dns', 'record_types', default=['A', 'AAAA'])
    )
    probe = CloudFrontProbe(
        timeout=run_config.timeout,
        signature=config.get('probe', 'signature', default='Bad request'),
        forbidden_status=config.get('probe', 'forbidden_status', default=403),
        user_agent=config.get('probe', 'user_agent'),
        verify_tls=config.get('probe', 'verify_tls', default=True)
    )

    pool = WorkerPool(index, sink, concurrency=run_config.concurrency,
                      resolver=resolver, probe=probe)

    try:
        # Read raw bytes where available; decoding happens per line
        result = pool.run(read_hostnames(getattr(sys.stdin, 'buffer', sys.stdin)))
    except KeyboardInterrupt:
        sink.log("\n[!] Interrupted", "yellow")
        return 130

    sink.debug(
        f"[DONE] {result['processed']} hosts, {result['candidates']} on AWS ranges, "
        f"{result['findings']} findings in {result['elapsed']:.1f}s",
        "green"
    )
    return 0
