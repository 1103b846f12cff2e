"""
discogs-cli: an async client and command-line tool for the Discogs database API.
"""

__version__ = "0.1.0"
