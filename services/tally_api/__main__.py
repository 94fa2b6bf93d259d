"""Run the tally API with `python -m services.tally_api`."""
from services.tally_api.main import run

run()
