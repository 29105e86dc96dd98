"""
Scrapers Package
Procesamiento por lotes del Roster Scraper Suite
"""

from .roster_scraper import RosterScraper, ScreenshotText, ScrapeResult, NoScreenshotsError

__all__ = [
    'RosterScraper',
    'ScreenshotText',
    'ScrapeResult',
    'NoScreenshotsError'
]

__version__ = '1.0.0'
