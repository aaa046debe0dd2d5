"""LLM explanation utilities."""

from socwatch_analyzer.explain.llm import (
    build_llm_input,
    render_markdown,
    run_explain,
    validate_llm_output
)

__all__ = [
    "build_llm_input",
    "render_markdown",
    "run_explain",
    "validate_llm_output"
]
