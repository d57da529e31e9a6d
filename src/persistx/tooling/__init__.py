"""Schema evolution tooling: starter schema, rename suggestions and payload migration."""

from persistx.tooling.decisions import DefaultDecisionProvider, ScriptedDecisionProvider, StreamDecisionProvider
from persistx.tooling.diff import apply_alias_mapping, run_diff, suggest_renames
from persistx.tooling.init import build_starter_schema, run_init
from persistx.tooling.migrate import build_alias_map, migrate_payload, run_migrate
from persistx.tooling.similarity import similarity

__all__ = [
    "DefaultDecisionProvider",
    "ScriptedDecisionProvider",
    "StreamDecisionProvider",
    "apply_alias_mapping",
    "build_alias_map",
    "build_starter_schema",
    "migrate_payload",
    "run_diff",
    "run_init",
    "run_migrate",
    "similarity",
    "suggest_renames",
]
