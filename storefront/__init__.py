"""Storefront cart service."""
