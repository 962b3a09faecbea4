"""instafeed: an image feed with likes, comments and follows."""

__version__ = "0.1.0"
