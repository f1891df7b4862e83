"""
Newscast: turns a line of business data into a short AI news-anchor video.
"""

__version__ = "0.1.0"
