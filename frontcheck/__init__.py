"""
frontcheck - finds CloudFront distributions whose origin still answers
on AWS IP space with the "Bad request" Host-header rejection.
"""

from .core.config import ConfigManager, RunConfig
from .core.feed import FeedError
from .core.output import Kind, ResultSink
from .core.ranges import Block, RangeIndex
from .runner import WorkerPool, read_hostnames, run_pool
from .vulns.cloudfront import CloudFrontProbe, ProbeResult, normalize_url

__version__ = '1.0.0'

__all__ = [
    'ConfigManager',
    'RunConfig',
    'FeedError',
    'Kind',
    'ResultSink',
    'Block',
    'RangeIndex',
    'WorkerPool',
    'read_hostnames',
    'run_pool',
    'CloudFrontProbe',
    'ProbeResult',
    'normalize_url'
]
