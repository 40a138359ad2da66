"""Context assembly: ranked results to a structured, cited answer."""

from src.services.assembly.engine import ContextAssemblyEngine, new_response_id

__all__ = ["ContextAssemblyEngine", "new_response_id"]
