"""LLM completion client (OpenAI Chat Completions over httpx)."""
