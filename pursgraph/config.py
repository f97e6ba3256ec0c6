"""Runtime settings for the analyzer supervisor and graph generation."""

from __future__ import annotations

from .config_manager import BASE_DIR, CONFIG_FILE, load_section

_ide_config = load_section("ide")
_graph_config = load_section("graph")

# purs ide server -- loaded from ~/.pursgraph/config.toml (set via `pursgraph config set`)
IDE_HOST = "127.0.0.1"
IDE_PORT: int = int(_ide_config["port"])
IDE_OUTPUT_DIRECTORY: str = _ide_config["output_directory"]
IDE_SOURCE_GLOBS = list(_ide_config["source_globs"])
IDE_LOG_LEVEL: str = _ide_config["log_level"]
IDE_LOG_LEVELS = ("all", "debug", "perf", "none")
PURS_COMMAND = list(_ide_config["purs_command"])
IDE_WARMUP_SECONDS = float(_ide_config["warmup_seconds"])
IDE_LOG_BUFFER_SIZE = int(_ide_config["log_buffer_size"])

# Dependency graph
MAX_CONCURRENT_REQUESTS = int(_graph_config["max_concurrent_requests"])
MAX_COMPLETION_RESULTS = int(_graph_config["max_completion_results"])

# Tree-sitter grammar name in tree-sitter-language-pack
GRAMMAR_NAME = "purescript"

__all__ = [
    "BASE_DIR",
    "CONFIG_FILE",
    "GRAMMAR_NAME",
    "IDE_HOST",
    "IDE_LOG_BUFFER_SIZE",
    "IDE_LOG_LEVEL",
    "IDE_LOG_LEVELS",
    "IDE_OUTPUT_DIRECTORY",
    "IDE_PORT",
    "IDE_SOURCE_GLOBS",
    "IDE_WARMUP_SECONDS",
    "MAX_COMPLETION_RESULTS",
    "MAX_CONCURRENT_REQUESTS",
    "PURS_COMMAND",
]
