"""Keyword Journey -- Naver keyword research with buyer-journey stage analysis."""

__version__ = "1.0.0"
