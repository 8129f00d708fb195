"""
CaseCraft: Browser UI Test Case Authoring and Execution

Turns hand-written JSON descriptors, natural-language instructions and
AI-read page screenshots into executable test cases, and runs them against
a live browser with a fallback-aware action resolution engine.
"""

__version__ = "0.1.0"
