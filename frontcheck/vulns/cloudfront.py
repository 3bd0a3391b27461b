"""
CloudFront Origin Misconfiguration Check
Probes a hostname over plain HTTP and flags the response CloudFront gives
when a distribution rejects the request's Host header: a 403 whose body
contains "Bad request".
"""

from dataclasses import dataclass
from typing import Optional

import requests
import urllib3


def normalize_url(hostname: str) -> str:
    """Prefix http:// unless the value already carries an http(s) scheme"""
    if hostname.startswith('http://') or hostname.startswith('https://'):
        return hostname
    return f"http://{hostname}"


def _decode_body(content: bytes, encoding: Optional[str]) -> str:
    try:
        return content.decode(encoding or 'utf-8', errors='replace')
    except LookupError:
        # Server advertised a charset Python does not know
        return content.decode('utf-8', errors='replace')


@dataclass
class ProbeResult:
    """Outcome of one probe; reported, never stored"""
    url: str
    status_code: Optional[int] = None
    body: Optional[str] = None
    misconfigured: bool = False
    error: Optional[str] = None


class CloudFrontProbe:
    """
    Runs the detection steps for one hostname:

        normalize -> request -> classify status -> read body -> match signature

    Each step can end the probe early with no finding. Transport and
    body-read errors land in ProbeResult.error instead of being raised.
    """

    def __init__(self, timeout: Optional[float] = None, signature: str = 'Bad request',
                 forbidden_status: int = 403, user_agent: Optional[str] = None,
                 verify_tls: bool = True):
        self.timeout = timeout
        self.signature = signature
        self.forbidden_status = forbidden_status
        self.user_agent = user_agent
        self.verify_tls = verify_tls

        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def probe(self, hostname: str, session: requests.Session, sink=None) -> ProbeResult:
        """
        Probe `hostname` and report a finding to `sink` if it matches.

        Args:
            hostname: Hostname or URL from the input stream
            session: The calling worker's requests session
            sink: Optional ResultSink for findings and verbose diagnostics

        Returns:
            ProbeResult describing where the probe stopped
        """
        url = normalize_url(hostname)
        result = ProbeResult(url=url)

        headers = {'User-Agent': self.user_agent} if self.user_agent else None

        try:
            response = session.get(
                url,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_tls,
                stream=True
            )
        except requests.exceptions.RequestException as e:
            result.error = f"Request failed: {e}"
            return result

        with response:
            result.status_code = response.status_code

            if sink is not None:
                sink.diagnostic(f"{url},{response.status_code}")

            if response.status_code != self.forbidden_status:
                return result

            try:
                content = response.content
            except requests.exceptions.RequestException as e:
                result.error = f"Error reading response body for {url}: {e}"
                if sink is not None:
                    sink.diagnostic(result.error)
                return result

            result.body = _decode_body(content, response.encoding)

        # Matched on the raw bytes so an unusable charset cannot hide the signature
        if self.signature.encode('utf-8') in content:
            result.misconfigured = True
            if sink is not None:
                sink.finding(url)

        return result

    __call__ = probe
