"""Headless page runtime: the view-controllers of the board's pages."""
from loreboard.client.page import Page, PageKind, connect_supabase, open_device_storage

__all__ = ["Page", "PageKind", "connect_supabase", "open_device_storage"]
