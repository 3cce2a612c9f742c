"""jobcraft: AI-assisted job application materials.

Fans text generation, embedding and image analysis requests out to
several LLM backends and merges their answers.
"""

__version__ = "0.1.0"
