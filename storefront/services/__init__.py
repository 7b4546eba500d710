"""Storefront services: money helpers and Supabase repositories."""
