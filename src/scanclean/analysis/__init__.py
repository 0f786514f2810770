"""Analysis-service access.

Submodules:
  schemas  -- pydantic structured-output models
  prompts  -- system prompts for each detection and rewrite call
  client   -- AnalysisClient protocol, OpenAI/Azure client and offline client
"""
