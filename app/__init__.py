"""Application/UI layer package."""

from .facade import ApplicationFacade, ApplicationSummaryView

__all__ = ["ApplicationFacade", "ApplicationSummaryView"]
