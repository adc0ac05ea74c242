"""
Tuning constants for the StudyPal study assistant.
"""

# Generation sizes
QUIZ_QUESTION_COUNT = 10     # Questions requested per quiz
FLASHCARDS_MIN = 5           # Fewest key terms asked for per deck
FLASHCARDS_MAX = 10          # Most key terms asked for per deck

# UI behaviour
ERROR_BANNER_SECONDS = 5     # How long an error banner stays visible

# Source material settings
MAX_SOURCE_CHARS = 6000      # Cap on source context pasted into a prompt
CHUNK_SIZE = 1200            # Characters per indexed PDF chunk
CHUNK_OVERLAP = 200          # Overlap between neighbouring chunks
DEFAULT_RETRIEVAL_K = 6      # Default number of passages to retrieve
MAX_RETRIEVAL_K = 20         # Maximum number of passages to retrieve

# LLM settings for the "fastest" model configuration
LLM_TEMPERATURE_FAST = 0.1    # Lower temperature for faster, more deterministic responses
LLM_MAX_TOKENS_FAST = 2000    # Limit tokens for faster responses
FAST_REASONING_EFFORT = "minimal"  # Reasoning models skip extended thinking
