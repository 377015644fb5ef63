"""Network fetchers for ranker models."""

from .url_fetcher import FetchResult, UrlFetcher, HttpUrlFetcher, is_valid_url

__all__ = ['FetchResult', 'UrlFetcher', 'HttpUrlFetcher', 'is_valid_url']
