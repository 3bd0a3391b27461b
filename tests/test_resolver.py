import dns.exception
import dns.resolver
import pytest

from frontcheck.resolution.resolver import DnsResolver, host_from_target


class Answer:
    def __init__(self, text):
        self.text = text

    def to_text(self):
        return self.text


class StubDnsResolver:
    """Replaces dns.resolver.Resolver; maps (name, rtype) -> answers or exception"""

    def __init__(self, table):
        self.table = table
        self.nameservers = []
        self.timeout = 2.0
        self.lifetime = 5.0
        self.queries = []

    def resolve(self, name, rtype):
        self.queries.append((name, rtype))
        outcome = self.table.get((name, rtype), dns.resolver.NoAnswer())
        if isinstance(outcome, Exception):
            raise outcome
        return [Answer(a) for a in outcome]


@pytest.fixture
def make_resolver(monkeypatch):
    def factory(table, **kwargs):
        stub = StubDnsResolver(table)
        monkeypatch.setattr(dns.resolver, 'Resolver', lambda: stub)
        return DnsResolver(**kwargs), stub
    return factory


@pytest.mark.parametrize('target,expected', [
    ('a.example.com', 'a.example.com'),
    ('  a.example.com\n', 'a.example.com'),
    ('http://a.example.com', 'a.example.com'),
    ('https://a.example.com:8443/path?q=1', 'a.example.com'),
    ('a.example.com.', 'a.example.com'),
    ('http://[2600:9000::1]:80/', '2600:9000::1'),
])
def test_host_from_target(target, expected):
    assert host_from_target(target) == expected


def test_resolves_a_and_aaaa(make_resolver):
    resolver, stub = make_resolver({
        ('a.example.com', 'A'): ['13.32.1.1', '13.32.1.2'],
        ('a.example.com', 'AAAA'): ['2600:9000::1'],
    })

    assert resolver.resolve('a.example.com') == ['13.32.1.1', '13.32.1.2', '2600:9000::1']
    assert stub.queries == [('a.example.com', 'A'), ('a.example.com', 'AAAA')]


def test_url_input_is_resolved_by_host(make_resolver):
    resolver, stub = make_resolver({('a.example.com', 'A'): ['13.32.1.1']})

    assert resolver('https://a.example.com/x') == ['13.32.1.1']


@pytest.mark.parametrize('error', [
    dns.resolver.NXDOMAIN(),
    dns.resolver.NoNameservers(),
    dns.exception.Timeout(),
    dns.exception.DNSException('boom'),
])
def test_failures_yield_no_addresses(make_resolver, error):
    resolver, _ = make_resolver({
        ('gone.example.com', 'A'): error,
        ('gone.example.com', 'AAAA'): error,
    })

    assert resolver.resolve('gone.example.com') == []


def test_one_family_failing_keeps_the_other(make_resolver):
    resolver, _ = make_resolver({
        ('a.example.com', 'A'): dns.exception.Timeout(),
        ('a.example.com', 'AAAA'): ['2600:9000::1'],
    })

    assert resolver.resolve('a.example.com') == ['2600:9000::1']


def test_duplicate_answers_collapse(make_resolver):
    resolver, _ = make_resolver({('a.example.com', 'A'): ['13.32.1.1', '13.32.1.1']})

    assert resolver.resolve('a.example.com') == ['13.32.1.1']


def test_empty_name_is_not_queried(make_resolver):
    resolver, stub = make_resolver({})

    assert resolver.resolve('   ') == []
    assert stub.queries == []


@pytest.mark.parametrize('target,expected', [
    ('13.32.4.10', ['13.32.4.10']),
    ('http://13.32.4.10:8080/', ['13.32.4.10']),
    ('2600:9000::1', ['2600:9000::1']),
    ('http://[2600:9000:0::1]/', ['2600:9000::1']),
])
def test_ip_literal_is_not_queried(make_resolver, target, expected):
    resolver, stub = make_resolver({})

    assert resolver.resolve(target) == expected
    assert stub.queries == []


def test_settings_are_applied(make_resolver):
    resolver, stub = make_resolver({}, nameservers=['1.1.1.1'], timeout=3, record_types=('A',))

    assert stub.nameservers == ['1.1.1.1']
    assert stub.timeout == 3
    assert stub.lifetime == 3
    resolver.resolve('a.example.com')
    assert stub.queries == [('a.example.com', 'A')]
