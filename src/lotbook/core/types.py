"""Shared type aliases used across lotbook."""

from decimal import Decimal
from pathlib import Path

PathLike = str | Path

# Anything that converts cleanly through Decimal(str(value))
Numeric = Decimal | int | float | str
