"""Knowledge base of free models, free-tier providers and output patterns."""

from llm_radar.knowledge.base import (
    PATTERN_FIELDS,
    CompiledKnowledgeBase,
    compile_config,
    default_config,
    load_and_compile,
    load_config,
    merge_override,
)

__all__ = [
    "CompiledKnowledgeBase",
    "PATTERN_FIELDS",
    "compile_config",
    "default_config",
    "load_and_compile",
    "load_config",
    "merge_override",
]
