"""
trendscope.reporting — CLI formatting and flat-file export of the ranked view.

It does NOT compute anything — scores and ladders are displayed as stored.

Modules:
  formatters — ASCII terminal table formatters for Typer CLI commands.
  export     — CSV/JSON flat-file export helpers.
"""
