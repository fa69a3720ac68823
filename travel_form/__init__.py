"""
Travel Form Service.

Collects travel claim submissions (contact details, a review screenshot and
a travel ticket) over HTTP and stores them in a document store.
"""

__version__ = "0.1.0"
