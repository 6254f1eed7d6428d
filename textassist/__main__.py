"""
TextAssist settings store

Keeps the LLM provider profiles, the active provider, inference and model
parameters and the supported-language list of the TextAssist desktop tool in
a single JSON document.

Quick Start:
    pip install -e .
    textassist settings show
    python -m textassist settings providers list
"""

from textassist.cli.cli import main

if __name__ == "__main__":
    main()
