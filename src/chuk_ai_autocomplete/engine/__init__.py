# chuk_ai_autocomplete/engine/__init__.py
"""
Completion engine.

The pipeline for one trigger cycle:
- TriggerController: decides whether an input event starts a completion
- ContextExtractor / AmbientContextExtractor: build the cursor context
- PromptBuilder: structured and streaming prompts
- StreamAssembler: cleans, trims and throttles model output
- CompletionCache: strict LRU of cleaned completions
- CompletionOrchestrator: runs the cycle against an EngineState
"""

from .cache import CompletionCache, compute_cache_key
from .context_extractor import AmbientContextExtractor, ContextExtractor
from .model_loader import ModelLoader
from .orchestrator import CompletionOrchestrator, OutcomeCallback
from .prompt_builder import (
    SYSTEM_PROMPT,
    PromptBuilder,
    build_response_schema,
    derive_tone_hints,
    is_question,
)
from .state import Clock, EngineState, ModelHandles, TriggerMarks, monotonic_ms
from .stream_assembler import (
    StreamAssembler,
    clean_completion,
    count_sentence_endings,
    finalize_completion,
    limit_to_sentence_range,
    remove_context_overlap,
    strip_cursor_artifacts,
)
from .trigger import TriggerController, is_typing_key, matches_shortcut

__all__ = [
    # Cache
    "CompletionCache",
    "compute_cache_key",
    # Context
    "AmbientContextExtractor",
    "ContextExtractor",
    # Prompts
    "SYSTEM_PROMPT",
    "PromptBuilder",
    "build_response_schema",
    "derive_tone_hints",
    "is_question",
    # Assembly
    "StreamAssembler",
    "clean_completion",
    "count_sentence_endings",
    "finalize_completion",
    "limit_to_sentence_range",
    "remove_context_overlap",
    "strip_cursor_artifacts",
    # Triggers
    "TriggerController",
    "is_typing_key",
    "matches_shortcut",
    # State
    "Clock",
    "EngineState",
    "ModelHandles",
    "TriggerMarks",
    "monotonic_ms",
    # Orchestration
    "CompletionOrchestrator",
    "ModelLoader",
    "OutcomeCallback",
]
