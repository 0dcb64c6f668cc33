# anomaly_tree/demo.py
import sys

from .tree import Sample, build, classify

# Normal transactions sit between 50 and 65, anomalous ones at 1000 and above
TOY_TRANSACTIONS = [
    Sample(50.0, False),
    Sample(60.0, False),
    Sample(1000.0, True),
    Sample(1200.0, True),
    Sample(55.0, False),
    Sample(65.0, False),
    Sample(1100.0, True),
    Sample(52.0, False),
]


def describe(prediction):
    return "Anomaly (Potential Fraud)" if prediction else "Normal Transaction"


def main(argv=None):
    """
    Trains on the toy transactions and classifies one amount.
    The amount is taken from the first argument, or read from stdin when none is given.
    """
    if argv is None:
        argv = sys.argv[1:]

    print(f"Training decision tree with {len(TOY_TRANSACTIONS)} transactions...")
    tree = build(TOY_TRANSACTIONS)
    print("Training completed!\n")

    if argv:
        raw_amount = argv[0]
    else:
        try:
            raw_amount = input("Enter transaction amount: ")
        except EOFError:
            print("\nError: no transaction amount given.")
            return 1
    try:
        amount = float(raw_amount)
    except ValueError:
        print(f"Error: '{raw_amount}' is not a valid transaction amount.")
        return 1

    print(f"Prediction: {describe(classify(tree, amount))}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
