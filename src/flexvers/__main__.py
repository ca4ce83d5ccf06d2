"""Allow running flexvers with ``python -m flexvers``."""

from flexvers.cli import app

app(prog_name="flexvers")
