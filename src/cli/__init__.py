# =============================================================================
# src/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line access to oracle-rag for operators who want to ingest
# content or ask questions without running the API server.
#
#   oracle.py -- ingest / batch / ask / stats subcommands
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - The component graph comes from ``src.main.build_components`` and is
#     imported lazily so ``--help`` stays fast.
# =============================================================================

"""CLI tools for oracle-rag.

- ``python -m src.cli.oracle`` (or ``python -m src.cli``) -- ingest content,
  ask business questions and show knowledge-base statistics.
"""
