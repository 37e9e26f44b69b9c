"""Starter .dockopt.toml template."""

DEFAULT_TOML = """\
# dockopt configuration
version = "1.0"

[analysis]
fail_on = "error"         # none | warning | error; exit 1 at or above this level
workers = 1               # >1 evaluates rules in parallel
# dockerignore = true     # omit to detect .dockerignore next to the Dockerfile

[output]
format = "terminal"       # terminal | text | structured | json | sarif
show_summary = true

[rules]
# enable = ["running-as-root", "cache-busting-order"]   # empty = all enabled
# disable = ["missing-healthcheck"]
# custom_dir = ".dockopt-rules"
"""
