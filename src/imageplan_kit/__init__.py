# LLM clients
from .llms import LLMConfig, Message, Role, create_llm_client

# Observability
from .observability import MetricsHook, NoOpMetricsHook

# Placement
from .placement import (
    InsertionRequest,
    PositionDescriptor,
    PositionKind,
    apply_insertions,
    parse_position,
    resolve_position,
)

# Planning
from .planning import (
    GeneratedImage,
    ImageGenerator,
    ImagePlan,
    ImagePlanner,
    PlanParseError,
    generate_images,
    insert_images,
)

# Prompts
from .prompts import Prompt, PromptsLibrary

# Streaming
from .streaming import IncrementalJSONArrayParser, ScanState

__all__ = [
    # LLM clients
    "LLMConfig",
    "Message",
    "Role",
    "create_llm_client",
    # Observability
    "MetricsHook",
    "NoOpMetricsHook",
    # Placement
    "InsertionRequest",
    "PositionDescriptor",
    "PositionKind",
    "apply_insertions",
    "parse_position",
    "resolve_position",
    # Planning
    "GeneratedImage",
    "ImageGenerator",
    "ImagePlan",
    "ImagePlanner",
    "PlanParseError",
    "generate_images",
    "insert_images",
    # Prompts
    "Prompt",
    "PromptsLibrary",
    # Streaming
    "IncrementalJSONArrayParser",
    "ScanState",
]
