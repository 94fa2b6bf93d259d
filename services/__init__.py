"""Services of the vote tally system."""
