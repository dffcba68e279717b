"""Advisory pipeline: data model, stages, scoring and the sequential runner."""
