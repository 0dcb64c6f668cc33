# anomaly_tree/stopping.py


def check_pre_split_stopping_conditions(node_num_anomalies, node_num_samples):
    """
    Checks for the stopping conditions that make split-finding pointless.
    A node holding a single sample, or samples that all share one label, is terminal.

    Args:
        node_num_anomalies (int): Number of samples labeled anomalous in the node.
        node_num_samples (int): Number of samples in the node.

    Returns:
        str or None: A string describing the reason for stopping, or None if no stopping condition is met.
    """
    if node_num_samples <= 1:
        return "single_sample"

    # Purity checks: if node is pure (no anomalies or only anomalies), stop.
    if node_num_anomalies == 0:
        return "pure_node (no anomalies)"
    if node_num_anomalies == node_num_samples:
        return "pure_node (all anomalies)"

    return None


def check_post_split_stopping_condition(
    best_split,
    base_entropy,
    verbose=False,
    node_depth_for_logs=0
):
    """
    Determines if splitting should stop after the best candidate split is known.
    A split is only worth making when its weighted entropy is strictly below the
    entropy of the node itself.

    Args:
        best_split (dict): Result of find_best_split; empty when no candidate threshold exists.
        base_entropy (float): Entropy of the node before splitting.
        verbose (bool): Flag for detailed logging.
        node_depth_for_logs (int): Depth of the node, for log indentation.

    Returns:
        str or None: A string describing the reason for stopping, or None if splitting should proceed.
    """
    indent = "  " * (node_depth_for_logs + 1)

    if not best_split:
        if verbose:
            print(f"{indent}  Gain Check: No candidate thresholds (all amounts identical). Stopping.")
        return "no_candidate_threshold"

    weighted_entropy = best_split['weighted_entropy']
    if verbose:
        print(f"{indent}  Gain Check: base entropy {base_entropy:.5f}, "
              f"best weighted entropy {weighted_entropy:.5f} at threshold {best_split['threshold']:.3f}")

    if weighted_entropy < base_entropy:
        return None  # Do not stop, proceed with split
    return f"no_entropy_gain ({weighted_entropy:.4f} >= {base_entropy:.4f})"


if __name__ == '__main__':
    print("--- Testing pre-split stopping conditions ---")
    print(f"Single sample: {check_pre_split_stopping_conditions(1, 1)}")  # single_sample
    print(f"All normal: {check_pre_split_stopping_conditions(0, 10)}")  # pure_node
    print(f"All anomalous: {check_pre_split_stopping_conditions(4, 4)}")  # pure_node
    print(f"Mixed: {check_pre_split_stopping_conditions(3, 8)}")  # None

    print("\n--- Testing post-split stopping condition ---")
    split = {'threshold': 532.5, 'weighted_entropy': 0.0}
    print(f"Gain: {check_post_split_stopping_condition(split, 0.954, verbose=True)}")  # None
    split = {'threshold': 2.5, 'weighted_entropy': 1.0}
    print(f"No gain: {check_post_split_stopping_condition(split, 1.0, verbose=True)}")  # no_entropy_gain
    print(f"No candidates: {check_post_split_stopping_condition({}, 1.0, verbose=True)}")
