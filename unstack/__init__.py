"""
unstack package

This package implements create-unstack, a CLI that scaffolds a Next.js starter project.

Key responsibilities are split across modules:
- `options.py`: feature flags, project name validation, `--config` loading, option resolution
- `prompts.py`: interactive terminal prompts
- `features.py`: one descriptor per optional feature (dependencies, files, layout fragments)
- `manifest.py`: pure derivation of every generated file from name + features
- `emitter.py`: writing files to disk and git initialization
- `cli.py`: CLI entrypoint and orchestration (resolve -> derive -> emit)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
