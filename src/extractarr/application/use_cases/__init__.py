from .extract_streams import ExtractionOrchestrator

__all__ = ["ExtractionOrchestrator"]
