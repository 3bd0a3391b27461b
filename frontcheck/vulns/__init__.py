"""Misconfiguration checks"""
from .cloudfront import CloudFrontProbe, ProbeResult, normalize_url

__all__ = ['CloudFrontProbe', 'ProbeResult', 'normalize_url']
