"""Rule evaluation, per-request decisions and traffic accounting."""
