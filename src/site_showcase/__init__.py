"""Site Showcase search service.

Catalog of user-submitted websites with moderated publishing and
hybrid semantic + substring search over approved entries.
"""

__version__ = "0.1.0"
