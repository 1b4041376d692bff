"""
End-to-end tests for the command line entry points.

Tests complete workflows from CSV input through scoring or retention
sweeps to printed output.
"""

import numpy as np
import pandas as pd
import pytest

from scoring import generate_sample_data
from scoring.config import ScoringConfig
from scoring.run import main as scoring_main
from retention.audit import RetentionAuditLog
from retention.run import main as retention_main


@pytest.fixture
def snapshots_csv(tmp_path):
    path = tmp_path / "snapshots.csv"
    generate_sample_data(n_subscribers=50, seed=7).to_csv(path, index=False)
    return path


@pytest.fixture
def accounts_csv(tmp_path):
    """Two subscribers (one brand new and idle, one long-standing) and one user without a plan."""
    now = pd.Timestamp.now(tz="UTC")
    path = tmp_path / "accounts.csv"
    pd.DataFrame([
        {
            "USER_ID": "risky",
            "EMAIL": "risky@example.com",
            "NAME": "Risky",
            "SUBSCRIPTION_ID": "sub_risky",
            "TIER": "STARTER",
            "PAYMENT_FREQUENCY": "MONTHLY",
            "STATUS": "ACTIVE",
            "CREATED_AT": (now - pd.Timedelta(days=10)).isoformat(),
            "LIFETIME_VALUE": 29.0,
            "PRIORITY_BOOKING_USED": False,
            "DISCOUNT_USED": False,
            "FREE_SERVICE_USED": False,
            "EMERGENCY_SERVICE_USED": False,
            "RECENT_BOOKING_COUNT": 0,
        },
        {
            "USER_ID": "steady",
            "EMAIL": "steady@example.com",
            "NAME": "Steady",
            "SUBSCRIPTION_ID": "sub_steady",
            "TIER": "PRIORITY",
            "PAYMENT_FREQUENCY": "YEARLY",
            "STATUS": "ACTIVE",
            "CREATED_AT": (now - pd.Timedelta(days=900)).isoformat(),
            "LIFETIME_VALUE": 3500.0,
            "PRIORITY_BOOKING_USED": True,
            "DISCOUNT_USED": True,
            "FREE_SERVICE_USED": True,
            "EMERGENCY_SERVICE_USED": True,
            "RECENT_BOOKING_COUNT": 5,
        },
        {
            "USER_ID": "browser",
            "EMAIL": "browser@example.com",
            "NAME": "Browser",
        },
    ]).to_csv(path, index=False)
    return path


class TestScoringCommand:
    """python -m scoring.run"""

    def test_scores_and_writes_output(self, snapshots_csv, tmp_path, capsys):
        output = tmp_path / "scored.csv"

        exit_code = scoring_main([str(snapshots_csv), "-o", str(output), "--summary"])

        assert exit_code == 0
        scored = pd.read_csv(output)
        assert len(scored) == 50
        assert scored["RISK_SCORE"].between(0, 100).all()
        assert "tenure_delta" in scored.columns

        out = capsys.readouterr().out
        assert "Scored 50 subscribers" in out
        assert "Risk distribution:" in out
        assert "Component breakdown:" in out

    def test_missing_input(self, tmp_path, capsys):
        assert scoring_main([str(tmp_path / "nope.csv")]) == 1
        assert "Input not found" in capsys.readouterr().out

    def test_invalid_rows_rejected(self, tmp_path, capsys):
        path = tmp_path / "bad.csv"
        df = generate_sample_data(n_subscribers=5)
        df.loc[0, "TIER"] = "GOLD"
        df.to_csv(path, index=False)

        assert scoring_main([str(path)]) == 1
        assert "ERROR" in capsys.readouterr().out

    def test_evaluate_needs_outcomes(self, snapshots_csv, capsys):
        assert scoring_main([str(snapshots_csv), "--evaluate"]) == 1
        assert "IS_CHURNED" in capsys.readouterr().out

    def test_evaluate(self, tmp_path, capsys):
        path = tmp_path / "history.csv"
        df = generate_sample_data(n_subscribers=40, seed=3)
        df["IS_CHURNED"] = np.random.RandomState(0).randint(0, 2, size=len(df))
        df.to_csv(path, index=False)

        assert scoring_main([str(path), "--evaluate", "--threshold", "70"]) == 0

        out = capsys.readouterr().out
        assert "Evaluation at threshold 70" in out
        assert "Precision" in out

    def test_custom_config(self, snapshots_csv, tmp_path):
        config_path = tmp_path / "flat.yaml"
        ScoringConfig(base_score=0, min_score=0, max_score=0).to_yaml(config_path)
        output = tmp_path / "scored.csv"

        assert scoring_main([str(snapshots_csv), "--config", str(config_path),
                             "-o", str(output)]) == 0
        assert (pd.read_csv(output)["RISK_SCORE"] == 0).all()


class TestRetentionCommand:
    """python -m retention.run"""

    def test_rescore_then_campaign(self, accounts_csv, tmp_path, capsys):
        audit_path = tmp_path / "retention.jsonl"

        exit_code = retention_main([
            str(accounts_csv), "rescore", "campaign",
            "--audit-log", str(audit_path), "--log-level", "WARNING",
        ])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert '"updated": 2' in out
        assert '"critical"' in out

        attempts = RetentionAuditLog(audit_path).get_attempts()
        assert [a.action for a in attempts] == ["CREDIT", "CALL", "EMAIL"]
        assert {a.user_id for a in attempts} == {"risky"}
        assert all(a.workflow_type == "CRITICAL_RISK" for a in attempts)

    def test_manual_campaign(self, accounts_csv, tmp_path, capsys):
        audit_path = tmp_path / "retention.jsonl"

        exit_code = retention_main([
            str(accounts_csv), "campaign", "--action", "EMAIL",
            "--customers", "steady", "ghost",
            "--audit-log", str(audit_path), "--log-level", "ERROR",
        ])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert '"processed": 1' in out
        assert "User not found: ghost" in out

    def test_report(self, accounts_csv, capsys):
        exit_code = retention_main([
            str(accounts_csv), "rescore", "report", "--log-level", "ERROR",
        ])

        assert exit_code == 0
        out = capsys.readouterr().out
        assert '"risk_distribution"' in out
        assert '"potential_revenue_loss": 348.0' in out

    def test_log_file(self, accounts_csv, tmp_path):
        log_file = tmp_path / "logs" / "retention.log"

        assert retention_main([
            str(accounts_csv), "stats", "--log-file", str(log_file),
        ]) == 0
        assert "Logging initialized" in log_file.read_text()

    def test_missing_accounts_file(self, tmp_path, capsys):
        assert retention_main([str(tmp_path / "nope.csv"), "report"]) == 1
        assert "Accounts file not found" in capsys.readouterr().out

    def test_missing_columns(self, tmp_path, capsys):
        path = tmp_path / "accounts.csv"
        pd.DataFrame([{"USER_ID": "u1"}]).to_csv(path, index=False)

        assert retention_main([str(path), "report"]) == 1
        assert "EMAIL" in capsys.readouterr().out
