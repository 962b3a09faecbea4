"""Client-side view models driving the feed over the HTTP API."""

from .api import ApiClientError, FeedApiClient
from .controller import FeedController, PostModalController, ProfileController

__all__ = [
    "ApiClientError",
    "FeedApiClient",
    "FeedController",
    "PostModalController",
    "ProfileController",
]
