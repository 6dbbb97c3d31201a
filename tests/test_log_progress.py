import logging

from transcript_intel.adapters.local import LogProgressAdapter
from transcript_intel.ports.progress import NORMALIZING, STORING


def test_stages_are_logged_without_per_job_state(caplog):
    adapter = LogProgressAdapter()
    with caplog.at_level(logging.INFO, logger="transcript_intel.adapters.local.log_progress"):
        adapter.report("job-1", NORMALIZING, detail="meeting-1")
        adapter.report("job-1", STORING, progress=0.5)

    assert [r.getMessage() for r in caplog.records] == [
        "[job-1] normalizing (meeting-1)",
        "[job-1] storing 50%",
    ]
    assert vars(adapter) == {}
