# matchsim package initializer
# Nothing is imported eagerly; consumers import from the submodules,
# e.g. `from matchsim.match import MatchEngine`.

__all__ = [
    "attributes",
    "config",
    "discipline",
    "events",
    "fatigue",
    "match",
    "probability",
    "replay",
    "report",
    "round",
    "state",
    "stats",
    "substitutions",
    "tactics",
    "trace",
    "utils",
]
