"""Defaults for the vision LLM that are tracked in Git."""

# Model version used by default. Can be overridden via env if needed.
DEFAULT_LLM_MODEL = "gpt-4o-mini"

# Instruction sent with every packaging photo. The line layout it asks for is
# what services.analysis_parser understands.
DEFAULT_ANALYSIS_PROMPT = (
    "Analyze this food packaging image and list all ingredients. "
    "For each ingredient provide:\n"
    "1. Ingredient name followed by colon\n"
    "2. Harm Scale (1-10, 10 being most harmful)\n"
    "3. Potential diseases or health concerns associated with excessive consumption\n"
    "\n"
    "Format each ingredient as:\n"
    "Ingredient Name:\n"
    "Harm Scale: X/10\n"
    "Potential Health Concerns: disease1, disease2, etc."
)
