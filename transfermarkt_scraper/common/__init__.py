"""
Common Module
Gemeinsame Helfer: Identity, Codecs, Parsing, HTTP, Playwright, Logging
"""
