"""HTTP API and persistence for Yieldly."""
