"""Unit tests for Prometheus metrics."""

from src.setup_app.events.metrics import ADMISSION_RESULTS, SetupMetrics
from src.setup_app.state.models import SetupRun, SetupStage


def test_instances_do_not_share_registries():
    first = SetupMetrics()
    second = SetupMetrics()

    first.record_admission("accepted")

    assert first.registry.get_sample_value(
        "setup_webhooks_received_total", {"result": "accepted"}
    ) == 1
    assert second.registry.get_sample_value(
        "setup_webhooks_received_total", {"result": "accepted"}
    ) == 0


def test_admission_results_start_at_zero():
    metrics = SetupMetrics()
    for result in ADMISSION_RESULTS:
        assert metrics.registry.get_sample_value(
            "setup_webhooks_received_total", {"result": result}
        ) == 0


def test_record_run():
    metrics = SetupMetrics()
    run = SetupRun(stage=SetupStage.FILES_CREATED)
    run.record_failure("secret:APP_ID", "boom")
    run.record_failure("file:LICENSE", "boom")
    run.finish()

    metrics.record_run(run)

    registry = metrics.registry
    assert registry.get_sample_value(
        "setup_runs_total", {"status": "completed_with_errors"}
    ) == 1
    assert registry.get_sample_value(
        "setup_step_failures_total", {"step": "secret:APP_ID"}
    ) == 1
    assert registry.get_sample_value("setup_run_duration_seconds_count") == 1


def test_generate_output():
    metrics = SetupMetrics()
    metrics.record_admission("rejected")

    output = metrics.generate_output().decode("utf-8")

    assert 'setup_webhooks_received_total{result="rejected"} 1.0' in output
    assert "# TYPE setup_run_duration_seconds histogram" in output
