"""Storefront backend: catalog, cart, checkout and admin console."""
