"""Daily job-mail triage: classify, route, dedupe alerts, report."""

__version__ = "0.3.0"
