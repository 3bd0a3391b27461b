"""Shared fixtures"""

import io

import pytest

from frontcheck.core.output import ResultSink
from frontcheck.core.ranges import RangeIndex

from fakes import AWS_ENTRIES


@pytest.fixture
def aws_index():
    return RangeIndex.build(AWS_ENTRIES)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def err():
    return io.StringIO()


@pytest.fixture
def sink(out, err):
    return ResultSink(out, verbose=False, err_stream=err)


@pytest.fixture
def verbose_sink(out, err):
    return ResultSink(out, verbose=True, err_stream=err)
