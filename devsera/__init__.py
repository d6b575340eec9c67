"""Devsera store: digital goods storefront and admin back-office API."""

__version__ = "1.4.0"
