from .extractor import ExtractorPort
from .extractor_registry import ExtractorRegistryPort

__all__ = ["ExtractorPort", "ExtractorRegistryPort"]
