"""HTTP surface for the discovery engine."""
