"""Pure str -> str text primitives used by the pipeline steps.

Submodules:
  normalizer  -- mojibake, ligatures, invisible characters, dashes, quotes, special characters
  shield      -- placeholder extraction and restoration for code, math and tables
  chunking    -- paragraph-aligned chunking with overlap context, and merging
  sections    -- line-range removal with exclusion zones, line-pattern removal, counting, sampling
  citations   -- citation and footnote-marker removal, bibliography lines, NOTES sections
  chapters    -- chapter/part heading detection, markers and final document assembly
"""
