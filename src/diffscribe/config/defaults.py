"""Starter .diffscribe.toml template."""

DEFAULT_TOML = """\
# diffscribe configuration
version = "1.0"

[export]
mode = "hunks"            # full | hunks | supervisor
output_dir = "diffscribe"
single_file = true        # several commits go into one commits-<timestamp>.md
unified_context = 3
include_renames = true
max_commits = 50

[render]
max_file_bytes = 2000000  # byte budget per reconstructed file
detect_binary = true      # also treat blobs containing NUL bytes as binary
max_workers = 4           # parallel blob fetches; 1 disables the pool

[supervisor]
large_change_threshold = 500
max_notable_lines = 3

[rules]
# enable = ["NOTABLE_DECLARATION"]   # empty = all enabled
# disable = ["SENSITIVE_KEY"]

[history]
enabled = false
path = ".diffscribe/history.json"
max_entries = 1000
max_age_days = 30
"""
