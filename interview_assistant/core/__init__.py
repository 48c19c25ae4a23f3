"""Interview session, timer, scoring and state container."""
