"""Allow running as: python -m cp437_atlas"""

from .atlas_cli import cli

cli()
