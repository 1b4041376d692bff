"""
Accuracy evaluation for stored churn risk scores.

Compares RISK_SCORE predictions against observed churn outcomes.
"""

import pandas as pd
from sklearn.metrics import (
    accuracy_score,
    precision_score,
    recall_score,
    f1_score,
    confusion_matrix,
)


def evaluate_predictions(df: pd.DataFrame, threshold: float) -> dict:
    """
    Calculate classification metrics at a given threshold.

    A subscriber is predicted to churn when RISK_SCORE >= threshold.

    Args:
        df: DataFrame with RISK_SCORE and IS_CHURNED (0/1) columns
        threshold: Score at or above which churn is predicted

    Returns:
        Dictionary with sample counts, accuracy, precision, recall, f1
        and confusion-matrix cells
    """
    missing = {"RISK_SCORE", "IS_CHURNED"} - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    if len(df) == 0:
        return {
            "threshold": threshold,
            "n_samples": 0,
            "n_churned": 0,
            "accuracy": 0.0,
            "precision": 0.0,
            "recall": 0.0,
            "f1": 0.0,
            "true_positives": 0,
            "false_positives": 0,
            "true_negatives": 0,
            "false_negatives": 0,
        }

    y_true = df["IS_CHURNED"].astype(int)
    y_pred = (df["RISK_SCORE"] >= threshold).astype(int)

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()

    return {
        "threshold": threshold,
        "n_samples": int(len(df)),
        "n_churned": int(y_true.sum()),
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "precision": float(precision_score(y_true, y_pred, zero_division=0)),
        "recall": float(recall_score(y_true, y_pred, zero_division=0)),
        "f1": float(f1_score(y_true, y_pred, zero_division=0)),
        "true_positives": int(tp),
        "false_positives": int(fp),
        "true_negatives": int(tn),
        "false_negatives": int(fn),
    }
