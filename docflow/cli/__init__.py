"""CLI tools for the docflow pipeline.

- ``python -m docflow.cli.process process FILE`` -- run one file through
  extraction, chunking, embedding, and storage.
- ``python -m docflow.cli.process types`` -- list supported file types.

Heavy imports are deferred inside the command handlers so ``--help`` and
``types`` stay fast.
"""
