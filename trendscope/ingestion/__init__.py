"""
Ingestion layer — turns collector output into validated raw signals.

Submodules:
  signal_file — CSV / JSON signal file parsers with per-row rejection reports
"""
