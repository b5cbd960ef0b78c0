"""MoneySync command-line interface."""
