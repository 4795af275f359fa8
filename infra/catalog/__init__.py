from .filesystem_catalog import FileSystemCatalog

__all__ = ["FileSystemCatalog"]
