# anomaly_tree/splitting.py
import numpy as np
from .utils import weighted_split_entropy


def generate_candidate_thresholds(sorted_amounts: np.ndarray):
    """
    Midpoints between every pair of adjacent, distinct amounts.

    Args:
        sorted_amounts (np.ndarray): Amounts in ascending order.

    Returns:
        list of float: Candidate thresholds in ascending order.
    """
    thresholds = []
    for i in range(1, sorted_amounts.size):
        lower, upper = sorted_amounts[i - 1], sorted_amounts[i]
        if lower == upper:
            continue  # no split exists between identical amounts
        # halves are summed separately so amounts near the float maximum cannot overflow
        thresholds.append(float(lower) / 2.0 + float(upper) / 2.0)
    return thresholds


def partition_sizes(sorted_amounts: np.ndarray, threshold: float):
    """
    Sizes of the (amount <= threshold, amount > threshold) partitions of a sorted array.
    """
    left_count = int(np.searchsorted(sorted_amounts, threshold, side='right'))
    return left_count, sorted_amounts.size - left_count


def find_best_split(
    sorted_amounts: np.ndarray,
    sorted_labels: np.ndarray,
    verbose: bool = False,
    node_depth_for_logs: int = 0
):
    """
    Finds the threshold with the lowest size-weighted entropy.

    Candidates are evaluated in ascending order and only a strictly lower
    weighted entropy replaces the current best, so ties keep the earliest threshold.

    Args:
        sorted_amounts (np.ndarray): Node amounts in ascending order.
        sorted_labels (np.ndarray): Boolean labels aligned with sorted_amounts.
        verbose (bool): Flag for detailed logging.
        node_depth_for_logs (int): Depth of the node, for log indentation.

    Returns:
        dict: Keys 'threshold', 'weighted_entropy', 'left_count', 'right_count',
              'left_anomalies', 'right_anomalies'. Empty if no candidate threshold exists.
    """
    best_split = {}
    indent = "  " * (node_depth_for_logs + 2)

    num_samples = sorted_amounts.size
    if num_samples < 2:
        return best_split

    thresholds = generate_candidate_thresholds(sorted_amounts)
    if not thresholds:
        if verbose:
            print(f"{indent}Less than 2 distinct amounts, no split possible.")
        return best_split

    # anomaly_prefix[i] = anomalies among the first i + 1 sorted samples
    anomaly_prefix = np.cumsum(sorted_labels, dtype=np.int64)
    total_anomalies = int(anomaly_prefix[-1])

    if verbose:
        print(f"{indent}Evaluating {len(thresholds)} candidate thresholds over {num_samples} samples.")

    for threshold in thresholds:
        left_count, right_count = partition_sizes(sorted_amounts, threshold)

        # A midpoint of two adjacent floats can round onto an endpoint
        if left_count == 0 or right_count == 0:
            continue

        left_anomalies = int(anomaly_prefix[left_count - 1])
        right_anomalies = total_anomalies - left_anomalies

        weighted_entropy = weighted_split_entropy(
            left_anomalies, left_count, right_anomalies, right_count
        )

        if not best_split or weighted_entropy < best_split['weighted_entropy']:
            best_split = {
                'threshold': threshold,
                'weighted_entropy': weighted_entropy,
                'left_count': left_count,
                'right_count': right_count,
                'left_anomalies': left_anomalies,
                'right_anomalies': right_anomalies,
            }

    return best_split
