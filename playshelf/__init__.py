"""playshelf: local video library indexing, thumbnail cache and watch-time insights."""

__version__ = "1.0.0"
