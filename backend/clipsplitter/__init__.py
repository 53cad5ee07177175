"""Random clip splitting and enrichment pipeline."""
