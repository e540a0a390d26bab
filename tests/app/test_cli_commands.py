from __future__ import annotations

import json
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from claimsync.domain.claims import RescoreReport, SubmissionRequest, SubmissionResult
from claimsync.domain.errors import InvalidSubmissionError, StorageError
from claimsync.domain.model import ConfidenceLevel, RunStatus
from claimsync.domain.orchestrator import RunReport
from claimsync.ui import cli as cli_module

STARTED_AT = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _report(status: RunStatus, pipeline: str = "updates") -> RunReport:
    return RunReport(pipeline=pipeline, status=status, started_at=STARTED_AT)


def test_updates_command_prints_report(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    calls: list[str] = []

    def fake_run() -> RunReport:
        calls.append("updates")
        return _report(RunStatus.COMPLETED)

    monkeypatch.setattr(cli_module, "run_updates_ingest", fake_run)

    cli_module.main(["updates"])

    assert calls == ["updates"]
    printed = json.loads(capsys.readouterr().out)
    assert printed == {"pipeline": "updates", "status": "completed", "failures": []}


def test_locked_run_is_not_an_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli_module,
        "run_claims_ingest",
        lambda: _report(RunStatus.LOCKED, pipeline="claims"),
    )

    cli_module.main(["claims"])


def test_failed_run_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        cli_module,
        "run_claims_ingest",
        lambda: _report(RunStatus.FAILED, pipeline="claims"),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["claims"])

    assert excinfo.value.code == 1


def test_submit_command_maps_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[SubmissionRequest] = []

    def fake_submit(request: SubmissionRequest) -> SubmissionResult:
        captured.append(request)
        return SubmissionResult(
            claim_id=uuid4(),
            subject_id=uuid4(),
            value=1_000_000,
            currency="USD",
            derived=False,
            confidence_level=ConfidenceLevel.LOW,
            confidence_reason="Manual submission - pending review",
        )

    monkeypatch.setattr(cli_module, "submit_manual_claim", fake_submit)

    cli_module.main(
        [
            "submit",
            "--subject",
            "Maker App",
            "--claim",
            "$10k MRR",
            "--source-url",
            "https://forum.example/thread/1",
            "--subject-url",
            "https://maker.example",
            "--tag",
            "saas",
            "--tag",
            "lovable",
        ]
    )

    assert captured == [
        SubmissionRequest(
            subject_name="Maker App",
            claim_text="$10k MRR",
            source_url="https://forum.example/thread/1",
            subject_url="https://maker.example",
            tags=("saas", "lovable"),
        )
    ]


def test_rejected_submission_exits_with_usage_code(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_submit(request: SubmissionRequest) -> SubmissionResult:
        raise InvalidSubmissionError(f"No revenue figure in {request.claim_text!r}")

    monkeypatch.setattr(cli_module, "submit_manual_claim", fake_submit)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            ["submit", "--subject", "Maker", "--claim", "doing great", "--source-url", "u"]
        )

    assert excinfo.value.code == 2


def test_missing_submit_arguments_is_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["submit", "--subject", "Maker"])

    assert excinfo.value.code == 2


def test_rescore_command(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []

    def fake_rescore() -> RescoreReport:
        calls.append("rescore")
        return RescoreReport(rescored=3, changed=1)

    monkeypatch.setattr(cli_module, "rescore", fake_rescore)

    cli_module.main(["rescore"])

    assert calls == ["rescore"]


@pytest.mark.parametrize(
    ("argv", "expected_seed"),
    [(["init"], False), (["init", "--seed"], True)],
)
def test_init_command_passes_seed_flag(
    monkeypatch: pytest.MonkeyPatch,
    argv: list[str],
    expected_seed: bool,  # noqa: FBT001
) -> None:
    captured: dict[str, object] = {}

    def fake_initialize(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli_module, "initialize", fake_initialize)

    cli_module.main(argv)

    assert captured == {"seed": expected_seed}


def test_unexpected_error_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_rescore() -> RescoreReport:
        raise StorageError("database is down")

    monkeypatch.setattr(cli_module, "rescore", broken_rescore)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["rescore"])

    assert excinfo.value.code == 1


def test_command_is_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main([])

    assert excinfo.value.code == 2
