"""Social bots (Reddit, Instagram) that reply to mentions with article summaries.

Each bot is a thin consumer of the POST /summarize endpoint.
"""
