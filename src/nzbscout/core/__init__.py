"""Result post-processing: sorting, triage aggregation, cache serialization."""
