# anomaly_tree/tree.py
import math
import time
import warnings
from typing import NamedTuple, Union

import numpy as np

from .utils import (
    calculate_anomaly_rate,
    binary_entropy,
    majority_label,
    is_missing_amount,
    is_missing_label,
    is_pandas_dataframe,
    convert_pandas_to_list_of_dicts
)
from .stopping import check_pre_split_stopping_conditions, check_post_split_stopping_condition
from .splitting import find_best_split


class Sample(NamedTuple):
    """One labeled transaction: the amount is the only feature, label True marks an anomaly."""
    amount: float
    label: bool


class Leaf(NamedTuple):
    prediction: bool
    num_samples: int = 0
    anomaly_rate: float = 0.0
    reason: str = ''


class Internal(NamedTuple):
    """Split rule: amount <= threshold goes left, anything else goes right."""
    threshold: float
    left: 'TreeNode'
    right: 'TreeNode'
    num_samples: int = 0
    anomaly_rate: float = 0.0
    entropy: float = 0.0
    weighted_entropy: float = 0.0


TreeNode = Union[Leaf, Internal]


def _as_sample(item):
    if isinstance(item, Sample):
        amount, label = item
    elif isinstance(item, (str, bytes, dict)):
        raise TypeError(f"Expected a Sample or an (amount, label) pair, got {item!r}.")
    else:
        try:
            amount, label = item
        except (TypeError, ValueError):
            raise TypeError(f"Expected a Sample or an (amount, label) pair, got {item!r}.")
    amount = float(amount)
    if math.isnan(amount):
        raise ValueError(f"Sample amount must not be NaN: {item!r}")
    return Sample(amount, bool(label))


def _to_sorted_arrays(samples):
    """Copies samples into amount/label arrays sorted by amount. The caller's sequence is left untouched."""
    samples = [_as_sample(item) for item in samples]
    amounts = np.array([s.amount for s in samples], dtype=float)
    labels = np.array([s.label for s in samples], dtype=bool)
    order = np.argsort(amounts, kind='stable')
    return amounts[order], labels[order]


def build(samples, verbose=False):
    """
    Induces a decision tree on the transaction amount.

    Each node stops as a leaf when it is pure or holds a single sample. Otherwise the
    midpoint threshold with the lowest weighted entropy is chosen; if it does not lower
    the node's entropy the node becomes a majority-vote leaf, else the samples are
    partitioned and both sides are grown the same way.

    Args:
        samples (sequence): Sample objects or (amount, label) pairs. Not modified.
        verbose (bool): If True, prints a per-node trace.

    Returns:
        Leaf or Internal: The root of the trained tree.

    Raises:
        ValueError: If samples is empty or an amount is NaN.
    """
    if samples is None:
        raise ValueError("Training data cannot be empty.")
    amounts, labels = _to_sorted_arrays(samples)
    if amounts.size == 0:
        raise ValueError("Training data cannot be empty.")

    if verbose:
        build_start_time = time.time()
        print(f"build started with {amounts.size} samples.")

    # Nodes are grown depth-first off an explicit stack and assembled bottom-up afterwards.
    # A child is always recorded after its parent, so walking the records backwards
    # builds every subtree before the node that owns it.
    pending = []
    stack = [(amounts, labels, 0, None, None)]

    while stack:
        node_amounts, node_labels, depth, parent_index, side = stack.pop()
        index = len(pending)
        if parent_index is not None:
            pending[parent_index]['children'][side] = index

        indent = "  " * (depth + 1)
        num_samples = node_amounts.size
        num_anomalies = int(np.count_nonzero(node_labels))
        anomaly_rate = calculate_anomaly_rate(num_anomalies, num_samples)

        if verbose:
            print(f"{indent}Processing node (Depth {depth}): {num_samples} samples, {num_anomalies} anomalies.")

        # 1. Pure or single-sample nodes are leaves
        stop_reason = check_pre_split_stopping_conditions(num_anomalies, num_samples)
        if stop_reason:
            pending.append(Leaf(bool(node_labels[0]), num_samples, anomaly_rate, stop_reason))
            if verbose:
                print(f"{indent}  Node becomes LEAF. Reason: {stop_reason}")
            continue

        # 2. Search thresholds; slices of a sorted array stay sorted, so no re-sort is needed
        base_entropy = binary_entropy(anomaly_rate)
        best_split = find_best_split(
            node_amounts, node_labels, verbose=verbose, node_depth_for_logs=depth
        )

        # 3. Only a strict entropy reduction justifies a split
        stop_reason = check_post_split_stopping_condition(
            best_split, base_entropy, verbose=verbose, node_depth_for_logs=depth
        )
        if stop_reason:
            pending.append(Leaf(majority_label(anomaly_rate), num_samples, anomaly_rate, stop_reason))
            if verbose:
                print(f"{indent}  Node becomes majority LEAF. Reason: {stop_reason}")
            continue

        # 4. Split and queue both sides, left on top so it is grown first
        if verbose:
            print(f"{indent}  Node SPLIT at amount <= {best_split['threshold']:.3f} "
                  f"({best_split['left_count']} left, {best_split['right_count']} right).")
        pending.append({
            'split': best_split,
            'num_samples': num_samples,
            'anomaly_rate': anomaly_rate,
            'entropy': base_entropy,
            'children': [None, None],
        })
        left_count = best_split['left_count']
        stack.append((node_amounts[left_count:], node_labels[left_count:], depth + 1, index, 1))
        stack.append((node_amounts[:left_count], node_labels[:left_count], depth + 1, index, 0))

    built = [None] * len(pending)
    for index in range(len(pending) - 1, -1, -1):
        record = pending[index]
        if isinstance(record, Leaf):
            built[index] = record
            continue
        left_index, right_index = record['children']
        built[index] = Internal(
            threshold=record['split']['threshold'],
            left=built[left_index],
            right=built[right_index],
            num_samples=record['num_samples'],
            anomaly_rate=record['anomaly_rate'],
            entropy=record['entropy'],
            weighted_entropy=record['split']['weighted_entropy'],
        )

    if verbose:
        print(f"build completed in {time.time() - build_start_time:.4f}s. Total nodes: {len(built)}")
    return built[0]


def classify(root, amount):
    """
    Walks the tree from root to a leaf and returns the leaf's prediction.

    Raises:
        TypeError: If a node on the path is neither a Leaf nor an Internal node.
    """
    node = root
    while True:
        if isinstance(node, Internal):
            node = node.left if amount <= node.threshold else node.right
        elif isinstance(node, Leaf):
            return node.prediction
        else:
            raise TypeError(f"Malformed tree node: {node!r}")


def count_nodes(root):
    """Total number of nodes, leaves included."""
    count, stack = 0, [root]
    while stack:
        node = stack.pop()
        count += 1
        if isinstance(node, Internal):
            stack.extend((node.left, node.right))
    return count


def tree_depth(root):
    """Depth of the deepest leaf; a lone leaf has depth 0."""
    deepest, stack = 0, [(root, 0)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, Internal):
            stack.extend(((node.left, depth + 1), (node.right, depth + 1)))
    return deepest


class AnomalyDecisionTree:
    def __init__(
        self,
        amount_column='amount',
        label_column='is_anomaly',
        verbose=False
    ):
        self.amount_column = amount_column
        self.label_column = label_column
        self.verbose = verbose

        self.root = None
        self.amount_median = 0.0

    def _samples_from_records(self, records):
        raw_amounts = [row.get(self.amount_column) for row in records]
        missing_mask = [is_missing_amount(value) for value in raw_amounts]
        observed = [float(value) for value, missing in zip(raw_amounts, missing_mask) if not missing]
        if not observed:
            raise ValueError(f"Column '{self.amount_column}' has no numeric values.")

        self.amount_median = float(np.median(observed))
        num_missing = sum(missing_mask)
        if num_missing:
            warnings.warn(
                f"{num_missing} row(s) have a missing or non-numeric '{self.amount_column}'. "
                f"Imputing the median amount {self.amount_median:.3f}.",
                UserWarning
            )

        samples = []
        for i, row in enumerate(records):
            if is_missing_label(row.get(self.label_column)):
                raise ValueError(f"Row {i} has no '{self.label_column}' value.")
            amount = self.amount_median if missing_mask[i] else float(raw_amounts[i])
            samples.append(Sample(amount, bool(row[self.label_column])))
        return samples

    def fit(self, data):
        if self.verbose:
            fit_start_time = time.time()
            print(f"AnomalyDecisionTree.fit started. Data has {len(data)} rows.")

        if is_pandas_dataframe(data):
            rows = convert_pandas_to_list_of_dicts(data)
        elif isinstance(data, list):
            rows = data
        else:
            raise TypeError("Input data must be a Pandas DataFrame, a list of dictionaries or a list of samples.")

        if not rows: raise ValueError("Training data cannot be empty.")

        num_dicts = sum(1 for row in rows if isinstance(row, dict))
        if num_dicts == len(rows):
            samples = self._samples_from_records(rows)
        elif num_dicts:
            raise TypeError("Rows must be all dictionaries or all samples, not a mix of both.")
        else:
            samples = [_as_sample(item) for item in rows]
            self.amount_median = float(np.median([s.amount for s in samples]))

        self.root = build(samples, verbose=self.verbose)

        if self.verbose:
            print(f"AnomalyDecisionTree.fit completed in {time.time() - fit_start_time:.4f}s. "
                  f"Total nodes: {self.n_nodes}, depth: {self.depth}")
        return self

    def _resolve_amount(self, value):
        return self.amount_median if is_missing_amount(value) else float(value)

    def predict_one(self, amount):
        if self.root is None: raise ValueError("Tree has not been fitted yet.")
        return classify(self.root, self._resolve_amount(amount))

    def predict(self, data):
        if self.root is None: raise ValueError("Tree has not been fitted yet.")

        if is_pandas_dataframe(data):
            raw_amounts = [row.get(self.amount_column) for row in convert_pandas_to_list_of_dicts(data)]
        elif isinstance(data, (str, bytes, dict)) or not hasattr(data, '__iter__'):
            raise TypeError("Input data must be a Pandas DataFrame, a list of dictionaries or an iterable of amounts.")
        else:
            raw_amounts = [
                row.get(self.amount_column) if isinstance(row, dict)
                else row.amount if isinstance(row, Sample)
                else row
                for row in data
            ]

        num_missing = sum(1 for value in raw_amounts if is_missing_amount(value))
        if num_missing:
            warnings.warn(
                f"{num_missing} amount(s) are missing or non-numeric. Using the training median {self.amount_median:.3f}.",
                UserWarning
            )

        return np.array([classify(self.root, self._resolve_amount(value)) for value in raw_amounts], dtype=bool)

    @property
    def n_nodes(self):
        return count_nodes(self.root) if self.root is not None else 0

    @property
    def depth(self):
        return tree_depth(self.root) if self.root is not None else 0

    def get_params(self):
        return {
            'amount_column': self.amount_column,
            'label_column': self.label_column,
            'verbose': self.verbose
        }

    def print_tree(self, node=None, indent=""):
        if node is None: node = self.root
        if node is None: return

        node_stats = f"p={node.anomaly_rate:.3f} | N={node.num_samples}"

        if isinstance(node, Leaf):
            label = "anomaly" if node.prediction else "normal"
            print(f"{indent}Leaf: {label} | {node_stats} (Reason: {node.reason})")
        else:
            condition = f"{self.amount_column} <= {node.threshold:.3f}"
            print(f"{indent}Split: {condition} (H={node.entropy:.4f} -> {node.weighted_entropy:.4f}) | {node_stats}")
            self.print_tree(node.left, indent + "  |--L: ")
            self.print_tree(node.right, indent + "  +--R: ")
