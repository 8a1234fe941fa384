"""fleet-normalizer — Turn messy vehicle schedules into a fixed-layout workbook."""

__version__ = "0.2.0"

FIELDS: list[str] = ["year", "make", "vin", "cost"]
