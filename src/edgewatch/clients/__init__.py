"""REST clients for the trading platform and the research oracle."""
