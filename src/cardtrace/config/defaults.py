"""
cardtrace.config.defaults - Default configuration values.
"""

DEFAULT_RELATION_KINDS = [
    "trace",
    "refines",
    "tests",
    "duplicates",
    "satisfy",
    "relate",
    "specialize",
]

DEFAULT_CONFIG = {
    "workspace": {
        "root": ".",
        "cards_dir": "_out",
        "trace_dir": "_out",
    },
    "trace": {
        "kinds": list(DEFAULT_RELATION_KINDS),
        "default_kind": "trace",
        "default_direction": "left_to_right",
    },
    "sync": {
        "refresh_cards_on_change": True,
        "exclude_self_highlight": False,
    },
    "export": {
        "include_memo": False,
        "mark": "●",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8080,
    },
    "logging": {
        "level": "warning",
    },
}
