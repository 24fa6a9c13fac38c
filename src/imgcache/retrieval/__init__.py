"""Retrieval of remote resources into the cache."""

from imgcache.retrieval.fetch import HttpFetcher

__all__ = ["HttpFetcher"]
