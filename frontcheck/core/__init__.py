"""Core modules: configuration, provider ranges and output"""
from .config import ConfigManager, RunConfig
from .feed import FeedError, fetch_prefixes, load_prefixes_file, filter_services
from .output import Kind, ResultSink
from .ranges import Block, RangeIndex

__all__ = [
    'ConfigManager',
    'RunConfig',
    'FeedError',
    'fetch_prefixes',
    'load_prefixes_file',
    'filter_services',
    'Kind',
    'ResultSink',
    'Block',
    'RangeIndex'
]
