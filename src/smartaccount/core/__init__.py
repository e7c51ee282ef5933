"""Address derivation, payload encoding and transaction composition."""
