from .playwright_session import PlaywrightBrowserSession, PlaywrightSessionFactory

__all__ = [
    "PlaywrightBrowserSession",
    "PlaywrightSessionFactory",
]
