from __future__ import annotations

ILLEGAL_FILENAME_CHARS = set('/\\:*?"<>|#^[]')
MD_GLOB = "**/*.md"
MD_SUFFIX = ".md"

YAML_FM_DELIM = "---"
TITLE_KEY = "title"
HEADING_MARKER = "#"

SETTINGS_FILENAME = "title-sync.json"
ENV_PREFIX = "TITLE_SYNC_"

ALREADY_SYNCED_MESSAGE = "All titles are already synchronized"
SUCCESS_MESSAGE = "Titles synchronized successfully"
