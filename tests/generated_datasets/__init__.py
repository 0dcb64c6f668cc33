# tests/generated_datasets/__init__.py

"""
Generated Datasets Sub-Package for Anomaly Decision Tree Tests
"""

# Synthetic transaction generators used by the accuracy harness.
