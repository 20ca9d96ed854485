"""Job feed ingestion package.

The package is structured around one reconciliation pass per run:
- `models.py` defines the canonical schema the store owns.
- `sources/` contains per-board connectors that fetch and normalize feeds.
- `normalizers.py`, `sanitize.py` and `fingerprint.py` hold the deterministic
  mapping from raw payloads to canonical jobs.
- `pipeline.py` merges, batches and persists each source's snapshot.
"""

__version__ = "1.0.0"
