# tests/__init__.py

"""
Testing Package for the Transaction Anomaly Decision Tree
"""

# Makes `tests` a package so the accuracy script can import the harness
# and the generated datasets as `tests.*`.
