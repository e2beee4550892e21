"""A pooling asynchronous HTTP/1.1 client with connection reuse and request retry."""

__version__ = "0.1.0"