"""
Notion → Jekyll Post Sync

Publishes pages from a Notion database as Jekyll posts, with images
downloaded into the site's asset tree.
"""

__version__ = "1.0.0"
