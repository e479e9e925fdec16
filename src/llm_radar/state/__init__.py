"""Persistence: the result cache and result export."""

from llm_radar.state.cache import ResultCache
from llm_radar.state.export import ResultsExport, export_filename, save_results

__all__ = ["ResultCache", "ResultsExport", "export_filename", "save_results"]
