from datetime import datetime, timezone

import pytest

from job_ingest.config import Settings
from job_ingest.errors import FetchError, IngestRunError, PersistenceError
from job_ingest.pipeline import chunk_jobs, reconcile_source, run_ingest
from job_ingest.sources import FeedResult, JobSource, SourceSnapshot
from job_ingest.store import MemoryStore

RUN_1 = "2024-01-01T00:00:00.000Z"
RUN_2 = "2024-01-02T00:00:00.000Z"


class FakeSource(JobSource):
    key = "fake"

    def __init__(self, name, feeds=None, error=None):
        super().__init__()
        self.name = name
        self.feeds = feeds or []
        self.error = error

    def fetch(self, client):
        if self.error is not None:
            raise self.error
        return SourceSnapshot(source=self.name, feeds=self.feeds)


class RecordingStore(MemoryStore):
    def __init__(self, fail_on_batch=None):
        super().__init__()
        self.batches = []
        self.mark_calls = []
        self.fail_on_batch = fail_on_batch

    def upsert_batch(self, source, run_ts, jobs):
        self.batches.append([j.source_job_id for j in jobs])
        if self.fail_on_batch == len(self.batches):
            raise PersistenceError("upsert", 413, "payload too large")
        return super().upsert_batch(source, run_ts, jobs)

    def mark_missing(self, source, run_ts):
        self.mark_calls.append((source, run_ts))
        return super().mark_missing(source, run_ts)


def feed(origin, jobs, raw_count=None):
    return FeedResult(origin=origin, url=f"https://{origin}.test", jobs=jobs, raw_count=raw_count or len(jobs))


def test_chunk_jobs_bounds_batch_size(make_job):
    jobs = [make_job(str(i)) for i in range(1201)]
    batches = chunk_jobs(jobs, 500)
    assert [len(b) for b in batches] == [500, 500, 201]
    assert chunk_jobs([], 500) == []


def test_reconcile_source_merges_batches_and_marks_missing(make_job):
    source = FakeSource(
        "Remotive",
        feeds=[
            feed("rss", [make_job("1", title="rss"), make_job("2"), make_job("3")]),
            feed("api", [make_job("1", title="api"), make_job("4")]),
        ],
    )
    store = RecordingStore()
    store.upsert_batch("Remotive", "2023-12-31T00:00:00.000Z", [make_job("old")])
    store.batches.clear()

    summary = reconcile_source(source, store, Settings(batch_size=3), RUN_1, client=None)

    assert store.batches == [["1", "2", "3"], ["4"]]
    assert store.mark_calls == [("Remotive", RUN_1)]
    assert store.get("Remotive", "1").title == "api"
    assert store.get("Remotive", "old").removed_at == RUN_1

    assert summary.fetched == {"rss": 3, "api": 2}
    assert summary.feeds == 2
    assert summary.combined_jobs == 4
    assert summary.batches == 2
    assert summary.upserted_rows == 4
    assert summary.marked_missing == 1


def test_batch_failure_aborts_before_mark_missing(make_job):
    source = FakeSource("Remotive", feeds=[feed("api", [make_job(str(i)) for i in range(5)])])
    store = RecordingStore(fail_on_batch=2)

    with pytest.raises(PersistenceError):
        reconcile_source(source, store, Settings(batch_size=2), RUN_1, client=None)

    assert len(store.batches) == 2
    assert store.mark_calls == []
    # the first batch stays committed
    assert {row.source_job_id for row in store.listings()} == {"0", "1"}


def test_two_runs_track_lifecycle(make_job):
    store = MemoryStore()
    settings = Settings()

    run_1 = FakeSource("Remotive", feeds=[feed("api", [make_job("1"), make_job("2")])])
    reconcile_source(run_1, store, settings, RUN_1, client=None)

    run_2 = FakeSource("Remotive", feeds=[feed("api", [make_job("1")])])
    summary = reconcile_source(run_2, store, settings, RUN_2, client=None)

    assert summary.marked_missing == 1
    present, gone = store.get("Remotive", "1"), store.get("Remotive", "2")
    assert (present.first_seen_at, present.verified_at, present.removed_at) == (RUN_1, RUN_2, None)
    assert (gone.first_seen_at, gone.verified_at, gone.removed_at) == (RUN_1, RUN_1, RUN_2)


def test_run_ingest_isolates_failing_source(make_job):
    store = MemoryStore()
    good = FakeSource("Arbeitnow", feeds=[feed("api", [make_job("a", source="Arbeitnow")])])
    bad = FakeSource("Remotive", error=FetchError("https://remotive.test", 502, "bad gateway"))
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    with pytest.raises(IngestRunError) as excinfo:
        run_ingest(Settings(), store, sources=[bad, good], client=object(), now=now)

    err = excinfo.value
    assert list(err.failures) == ["Remotive"]
    assert err.summary.failed_sources == ["Remotive"]
    assert [s.source for s in err.summary.sources] == ["Arbeitnow"]
    assert "502" in str(err)
    assert store.get("Arbeitnow", "a").verified_at == RUN_1


def test_run_ingest_uses_one_timestamp_for_all_sources(make_job):
    store = MemoryStore()
    sources = [
        FakeSource("Remotive", feeds=[feed("api", [make_job("1")])]),
        FakeSource("Arbeitnow", feeds=[feed("api", [make_job("1", source="Arbeitnow")])]),
    ]

    summary = run_ingest(Settings(), store, sources=sources, client=object(), now=datetime(2024, 1, 1))

    assert summary.run_ts == RUN_1
    assert {s.run_ts for s in summary.sources} == {RUN_1}
    assert summary.upserted_rows == 2
    assert summary.failed_sources == []
