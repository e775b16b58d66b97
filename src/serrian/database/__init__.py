"""Reference persistence for build subjects."""
