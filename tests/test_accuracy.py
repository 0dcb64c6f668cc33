# tests/test_accuracy.py
import sys
import os
import json
import time
import numpy as np
import pytest

# Adjust path to import from parent directory
current_dir_for_path = os.path.dirname(os.path.abspath(__file__))
project_root_for_path = os.path.dirname(current_dir_for_path)
if project_root_for_path not in sys.path:
    sys.path.insert(0, project_root_for_path)

from tests.test_harness import run_test_scenario, run_xgboost_peer_test
from tests.generated_datasets import dataset_generator_transactions

# --- Test Definitions ---

AMOUNT_COLUMN = dataset_generator_transactions.AMOUNT_COLUMN
LABEL_COLUMN = dataset_generator_transactions.LABEL_COLUMN
TRUE_P_COLUMN = dataset_generator_transactions.TRUE_P_COLUMN

DEFAULT_N_SAMPLES_TRAIN = 2000
DEFAULT_N_SAMPLES_TEST = 1000

# Scenarios define the datasets to be tested, with the lowest accuracy each must reach.
TEST_SCENARIOS_DEFINITIONS = [
    {
        "name": "Clustered_Separable",
        "generator_function_name": "generate_clustered_transactions",
        "specific_generator_params": {
            "normal_range": (10.0, 100.0), "anomaly_range": (1000.0, 5000.0),
            "anomaly_share": 0.1, "label_noise": 0.0
        },
        "min_accuracy": 1.0,
        "seed": 11
    },
    {
        "name": "Clustered_Rare_Anomalies",
        "generator_function_name": "generate_clustered_transactions",
        "specific_generator_params": {
            "normal_range": (1.0, 250.0), "anomaly_range": (2500.0, 9000.0),
            "anomaly_share": 0.01, "label_noise": 0.0
        },
        "min_accuracy": 0.99,
        "seed": 23
    },
    {
        "name": "Clustered_Label_Noise",
        "generator_function_name": "generate_clustered_transactions",
        "specific_generator_params": {
            "normal_range": (10.0, 100.0), "anomaly_range": (1000.0, 5000.0),
            "anomaly_share": 0.3, "label_noise": 0.05
        },
        "min_accuracy": 0.8,
        "seed": 37
    },
    {
        "name": "Step_Function",
        "generator_function_name": "generate_step_transactions",
        "specific_generator_params": {
            "min_val": 0, "max_val": 10000,
            "thresholds": [500, 5000], "p_values": [0.02, 0.3, 0.95]
        },
        "min_accuracy": 0.65,
        "seed": 41
    },
]


def generate_scenario_data(scenario_def):
    generator_func = getattr(dataset_generator_transactions, scenario_def["generator_function_name"])
    params = scenario_def["specific_generator_params"]
    seed = scenario_def.get("seed")

    train_data = generator_func(
        num_samples=scenario_def.get("n_samples_train_override", DEFAULT_N_SAMPLES_TRAIN),
        seed=seed, **params
    )
    test_data = generator_func(
        num_samples=scenario_def.get("n_samples_test_override", DEFAULT_N_SAMPLES_TEST),
        seed=None if seed is None else seed + 1000, **params
    )
    return train_data, test_data


@pytest.mark.parametrize("scenario_def", TEST_SCENARIOS_DEFINITIONS, ids=lambda s: s["name"])
def test_scenario_accuracy(scenario_def):
    train_data, test_data = generate_scenario_data(scenario_def)
    results = run_test_scenario(
        dataset_name=scenario_def["name"],
        train_data=train_data, test_data=test_data,
        amount_column=AMOUNT_COLUMN, label_column=LABEL_COLUMN,
        known_p_column=TRUE_P_COLUMN,
        verbose=False
    )
    assert "error" not in results
    evaluation = results["evaluation"]
    assert evaluation["num_test_samples"] == len(test_data)
    assert evaluation["accuracy"] >= scenario_def["min_accuracy"]


def test_separable_clusters_split_once():
    scenario_def = TEST_SCENARIOS_DEFINITIONS[0]
    train_data, test_data = generate_scenario_data(scenario_def)
    results = run_test_scenario(
        dataset_name=scenario_def["name"],
        train_data=train_data, test_data=test_data,
        amount_column=AMOUNT_COLUMN, label_column=LABEL_COLUMN,
        verbose=False
    )
    evaluation = results["evaluation"]
    assert evaluation["num_leaf_nodes"] == 2
    assert evaluation["max_depth_reached"] == 1
    assert 100.0 < evaluation["root_threshold"] < 1000.0


def test_xgboost_peer_on_separable_clusters():
    pytest.importorskip("xgboost")
    scenario_def = TEST_SCENARIOS_DEFINITIONS[0]
    train_data, test_data = generate_scenario_data(scenario_def)
    results = run_xgboost_peer_test(
        dataset_name=scenario_def["name"],
        train_data=train_data, test_data=test_data,
        amount_column=AMOUNT_COLUMN, label_column=LABEL_COLUMN,
        known_p_column=TRUE_P_COLUMN,
        verbose=False
    )
    assert results["evaluation"]["num_test_samples"] == len(test_data)
    assert results["evaluation"]["accuracy"] > 0.9


def run_all_scenarios(verbose=False, with_xgboost=True):
    """Iterates through all test scenarios, optionally alongside the XGBoost peer."""
    all_scenario_results = {}

    for i, scenario_def in enumerate(TEST_SCENARIOS_DEFINITIONS):
        scenario_name = scenario_def["name"]
        print(f"\n  -> Running Scenario {i+1}/{len(TEST_SCENARIOS_DEFINITIONS)}: {scenario_name}...")

        train_data, test_data = generate_scenario_data(scenario_def)

        all_scenario_results[scenario_name] = run_test_scenario(
            dataset_name=scenario_name,
            train_data=train_data, test_data=test_data,
            amount_column=AMOUNT_COLUMN, label_column=LABEL_COLUMN,
            known_p_column=TRUE_P_COLUMN,
            verbose=verbose
        )
        print(f"  -> Scenario {scenario_name} (AnomalyTree) completed.")

        if with_xgboost:
            print(f"    -> Running XGBoost peer test for {scenario_name}...")
            all_scenario_results[f"{scenario_name}_XGBoost"] = run_xgboost_peer_test(
                dataset_name=scenario_name,
                train_data=train_data, test_data=test_data,
                amount_column=AMOUNT_COLUMN, label_column=LABEL_COLUMN,
                known_p_column=TRUE_P_COLUMN,
                verbose=verbose
            )
            print(f"    -> XGBoost peer test for {scenario_name} completed.")

    return all_scenario_results

def save_results_to_json(results_dict, filename_prefix="AnomalyTree_AccuracyResults"):
    """Saves the final results dictionary to a JSON file."""
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    base_filename = f"{filename_prefix}_{timestamp}.json"
    results_dir = os.path.join(project_root_for_path, "tests", "results")
    os.makedirs(results_dir, exist_ok=True)
    filename = os.path.join(results_dir, base_filename)

    def convert_numpy_types(obj):
        if isinstance(obj, np.ndarray): return obj.tolist()
        if isinstance(obj, np.integer): return int(obj)
        if isinstance(obj, np.floating): return float(obj)
        if isinstance(obj, np.bool_): return bool(obj)
        if isinstance(obj, dict): return {k: convert_numpy_types(v) for k, v in obj.items()}
        if isinstance(obj, list): return [convert_numpy_types(i) for i in obj]
        return obj

    with open(filename, 'w') as f:
        json.dump(convert_numpy_types(results_dict), f, indent=4)
    print(f"\nResults saved to {filename}")

if __name__ == "__main__":
    # `python tests/test_accuracy.py --no-xgboost` skips the peer comparison
    with_xgboost = "--no-xgboost" not in sys.argv[1:]
    overall_summary = run_all_scenarios(verbose=True, with_xgboost=with_xgboost)

    print("\n\n========================================\n========= OVERALL TEST SUMMARY =========\n========================================")
    scenarios = [s["name"] for s in TEST_SCENARIOS_DEFINITIONS]
    for scenario_name in scenarios:
        print(f"\n  Scenario: {scenario_name}")
        for label, key in (("AnomalyTree", scenario_name), ("XGBoost    ", f"{scenario_name}_XGBoost")):
            scenario_results = overall_summary.get(key)
            if not scenario_results:
                continue
            if scenario_results.get("error"):
                print(f"    - {label}: FAILED ({scenario_results['error']})")
                continue
            eval_res = scenario_results["evaluation"]
            print(f"    - {label}: Accuracy={eval_res['accuracy']:.4f} | "
                  f"Precision={eval_res['precision']:.4f} | Recall={eval_res['recall']:.4f}")

    save_results_to_json(overall_summary)
    print("\nTest suite finished.")
