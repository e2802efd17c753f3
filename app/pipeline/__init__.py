"""Analysis pipeline: detection workers, tracking job and post-tracking engine."""
