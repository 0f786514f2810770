"""The sixteen-step cleaning pipeline.

Submodules:
  steps          -- CleaningStep, processing methods and the step-to-phase table
  configuration  -- CleaningConfiguration pydantic model and presets
  context        -- per-run mutable context: hints, removal log, anomalies
  results        -- StepResult and CleanedContent
  providers      -- reconnaissance, boundary pre-detection and final review providers
  patterns       -- shared page-number / header / footer pattern pass
  verification   -- advisory post-step checks
  handlers       -- one handler per step
  orchestrator   -- CleaningPipeline: run, cancel, callbacks
"""
