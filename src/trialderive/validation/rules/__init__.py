"""ADaM conformance rule implementations."""
