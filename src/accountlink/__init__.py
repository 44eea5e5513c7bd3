"""OAuth2 identity resolution and account linking."""

__version__ = "0.1.0"
