# anomaly_tree/utils.py
import math
import numbers


def safe_log2(x):
    """
    Base-2 logarithm that is defined everywhere: returns 0.0 for x <= 0.
    This makes the 0 * log2(0) terms of the entropy formula vanish.
    """
    return math.log2(x) if x > 0 else 0.0


def calculate_anomaly_rate(num_anomalies, num_samples):
    """
    Calculate the observed anomaly rate p = num_anomalies / num_samples.
    Handles num_samples = 0 to avoid division by zero.
    """
    if num_samples == 0:
        return 0.0
    return num_anomalies / num_samples


def binary_entropy(p):
    """
    Entropy in bits of a two-class set whose positive rate is p:
        H = -(p * log2(p) + (1 - p) * log2(1 - p))

    Args:
        p (float): Fraction of samples labeled anomalous, in [0, 1].

    Returns:
        float: The entropy. Exactly 0.0 when p is 0 or 1.
    """
    if p <= 0.0 or p >= 1.0:
        # -(0 * 0 + 1 * 0) is -0.0; report a clean zero for pure sets
        return 0.0
    q = 1.0 - p
    return -(p * safe_log2(p) + q * safe_log2(q))


def entropy_of_counts(num_anomalies, num_samples):
    """Entropy of a set described by its anomaly and sample counts."""
    return binary_entropy(calculate_anomaly_rate(num_anomalies, num_samples))


def weighted_split_entropy(left_anomalies, left_count, right_anomalies, right_count):
    """
    Size-weighted average entropy of a two-way partition:
        (|L| * H_L + |R| * H_R) / (|L| + |R|)
    """
    total = left_count + right_count
    if left_count == 0 or right_count == 0:
        raise ValueError("Both partitions of a split must be non-empty.")
    entropy_left = entropy_of_counts(left_anomalies, left_count)
    entropy_right = entropy_of_counts(right_anomalies, right_count)
    return (left_count * entropy_left + right_count * entropy_right) / total


def majority_label(p):
    """Majority vote for a set with anomaly rate p; ties go to the anomaly class."""
    return p >= 0.5


# --- Pandas DataFrame Utilities ---

_PANDAS_INSTALLED = True
try:
    import pandas as pd
except ImportError:
    _PANDAS_INSTALLED = False

def is_pandas_dataframe(data):
    """Checks if the provided data is a Pandas DataFrame."""
    if not _PANDAS_INSTALLED:
        return False
    return isinstance(data, pd.DataFrame)

def convert_pandas_to_list_of_dicts(dataframe):
    """
    Converts a Pandas DataFrame to a list of dictionaries.
    """
    if not is_pandas_dataframe(dataframe):
        raise TypeError("Input is not a Pandas DataFrame.")
    return dataframe.to_dict(orient='records')


def is_missing_amount(value):
    """True for None, non-numeric values, bools and NaN."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return True
    return math.isnan(value)


def is_missing_label(value):
    """True for None and NaN, which is how pandas reports a missing label."""
    if value is None or (_PANDAS_INSTALLED and value is pd.NA):
        return True
    return isinstance(value, float) and math.isnan(value)


if __name__ == '__main__':
    print(f"safe_log2(0.0): {safe_log2(0.0)}")  # 0.0
    print(f"safe_log2(8.0): {safe_log2(8.0)}")  # 3.0
    print(f"binary_entropy(0.5): {binary_entropy(0.5)}")  # 1.0
    print(f"binary_entropy(0.0): {binary_entropy(0.0)}")  # 0.0
    print(f"binary_entropy(0.25): {binary_entropy(0.25):.4f}")  # 0.8113

    # 3 anomalies out of 8, split perfectly into 5 normal | 3 anomalous
    print(f"weighted_split_entropy(0, 5, 3, 3): {weighted_split_entropy(0, 5, 3, 3)}")  # 0.0
    # A useless split keeps the parent's impurity
    print(f"weighted_split_entropy(1, 2, 1, 2): {weighted_split_entropy(1, 2, 1, 2)}")  # 1.0
