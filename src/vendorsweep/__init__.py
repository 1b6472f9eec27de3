"""
vendorsweep - Resumable bulk scraper for vendor product pages.

Drives a remote page-scraping service across many vendor sites in
round-robin order, checkpoints progress so interrupted runs resume, and
writes results into a shared cache where quality only ever moves up.
"""

__version__ = "0.1.0"
__app_name__ = "vendorsweep"
