from fleet_normalizer.cli import app

app()
