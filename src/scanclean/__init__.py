"""Safe, LLM-assisted cleaning of OCR'd Markdown books.

Subpackages:
  text       -- pure text primitives (normalizer, shield, chunking, sections, citations, chapters)
  defense    -- three-phase boundary defense (policy, validation, verification, heuristics, engine)
  analysis   -- analysis-service client, prompts and response schemas
  pipeline   -- steps, configuration, run context, step handlers and the orchestrator
"""
