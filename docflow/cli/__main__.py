"""Allow ``python -m docflow.cli`` execution."""

from docflow.cli.process import main

main()
