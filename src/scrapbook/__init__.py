"""
Scrapbook: capture, summarize and search a personal content library

Captures URLs, text, images and files, extracts clean text through
source-specific strategies, and answers questions over the stored library
with cited, retrieval-augmented answers from a local Ollama model.
"""

__version__ = "0.1.0"
