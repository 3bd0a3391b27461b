"""
Provider IP-range feed
Fetches AWS's published ip-ranges.json (or a saved copy) and returns its
prefix entries for the Range Index.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import requests

from .config import AWS_IP_RANGES_URL


class FeedError(Exception):
    """The provider range list could not be obtained; the run cannot start"""


def fetch_prefixes(url: str = AWS_IP_RANGES_URL, timeout: Optional[float] = 30,
                   session: Optional[requests.Session] = None) -> List[Dict]:
    """
    Download the provider range document.

    Args:
        url: Location of an ip-ranges.json style document
        timeout: Request timeout in seconds (None waits forever)
        session: Optional requests session to reuse

    Returns:
        IPv4 prefix entries followed by IPv6 prefix entries

    Raises:
        FeedError: on any transport, HTTP or parse failure (no retry)
    """
    getter = session.get if session is not None else requests.get

    try:
        response = getter(url, timeout=timeout)
    except requests.exceptions.Timeout:
        raise FeedError(f"Timeout after {timeout}s fetching {url}")
    except requests.exceptions.RequestException as e:
        raise FeedError(f"Request failed for {url}: {e}")

    if response.status_code != 200:
        body_preview = (response.text or "").strip().replace("\n", " ")[:200]
        raise FeedError(f"HTTP {response.status_code} from {url}: {body_preview}")

    try:
        document = response.json()
    except ValueError as e:
        raise FeedError(f"Invalid JSON from {url}: {e}")

    return parse_document(document, source=url)


def parse_document(document, source: str = '<document>') -> List[Dict]:
    """Pull the prefix lists out of a decoded ip-ranges.json document"""
    if not isinstance(document, dict):
        raise FeedError(f"Unexpected range document from {source}")

    prefixes = document.get('prefixes')
    ipv6_prefixes = document.get('ipv6_prefixes')

    if not isinstance(prefixes, list) and not isinstance(ipv6_prefixes, list):
        raise FeedError(f"No prefix lists in range document from {source}")

    entries = []
    for group in (prefixes, ipv6_prefixes):
        if isinstance(group, list):
            entries.extend(group)
    return entries


def load_prefixes_file(path: str) -> List[Dict]:
    """
    Load a saved range list from disk.

    Accepts either a full ip-ranges.json document or a plain text file with
    one CIDR per line ('#' starts a comment).

    Raises:
        FeedError: if the file is missing or cannot be parsed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FeedError(f"Range file not found: {file_path}")

    try:
        text = file_path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeError) as e:
        raise FeedError(f"Could not read range file {file_path}: {e}")

    if text.lstrip().startswith('{'):
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise FeedError(f"Invalid JSON in range file {file_path}: {e}")
        return parse_document(document, source=str(file_path))

    entries = []
    for line in text.splitlines():
        line = line.split('#', 1)[0].strip()
        if line:
            key = 'ipv6_prefix' if ':' in line else 'ip_prefix'
            entries.append({key: line})
    return entries


def filter_services(entries: Iterable[Dict], services: Optional[Iterable[str]]) -> List[Dict]:
    """Keep entries whose 'service' is one of `services` (case-insensitive)"""
    wanted = {s.strip().upper() for s in (services or []) if s and s.strip()}
    if not wanted:
        return list(entries)
    return [e for e in entries if str(e.get('service', '')).upper() in wanted]
