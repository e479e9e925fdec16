"""Classification of probe outcomes into categories."""

from llm_radar.classification.classifier import classify

__all__ = ["classify"]
