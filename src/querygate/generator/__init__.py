"""Query generation pipeline.

Example:
    >>> from querygate.generator import QueryGenerator
    >>> generator = QueryGenerator(config)
    >>> result = await generator.generate("Show my orders", user_context)
"""

from querygate.generator.prompts import PromptBuilder
from querygate.generator.query_generator import QueryGenerator, estimate_complexity

__all__ = [
    "PromptBuilder",
    "QueryGenerator",
    "estimate_complexity",
]
