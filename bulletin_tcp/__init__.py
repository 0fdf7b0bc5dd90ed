"""A TCP bulletin service: length-prefixed requests to log in, post articles and log out."""

__version__ = "0.1.0"