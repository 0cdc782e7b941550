"""
Strategic Scorecard Service
AI assist module.

Submodules:
    - gateway: LLM Gateway (provider routing, retry, offline stub)
    - prompts: markdown system prompts and {{var}} message templates
"""
