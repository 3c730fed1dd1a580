"""
Code Generation
Next.js source tree from a project definition
"""

from .generator import (
    CodeGenerationError,
    CodeGenerator,
    ErrorCode,
    GenerationResult,
    generate,
)
from .templates import TemplateRenderer

__all__ = [
    "CodeGenerationError",
    "CodeGenerator",
    "ErrorCode",
    "GenerationResult",
    "TemplateRenderer",
    "generate",
]
