# anomaly_tree/__init__.py

"""
Transaction Anomaly Decision Tree Package
"""

from .tree import Sample, Leaf, Internal, TreeNode, build, classify, AnomalyDecisionTree
from .utils import safe_log2, binary_entropy

VERSION = "0.1.0"
