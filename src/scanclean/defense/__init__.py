"""Boundary defense: nothing the analysis service proposes is cut unchecked.

Submodules:
  policy        -- PositionPolicy pydantic model with every threshold
  patterns      -- regex catalogues shared by verification and heuristics
  validation    -- Phase A: position, size and confidence checks
  verification  -- Phase B: region-appropriate content evidence
  heuristics    -- Phase C: AI-independent detectors
  engine        -- BoundaryDefenseEngine chaining A, B and C
"""
