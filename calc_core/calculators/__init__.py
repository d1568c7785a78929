"""
Calc Core Calculators - Ranking and Summary Functions
"""

from calc_core.calculators.build_ranking import (
    MetaRoleEntry,
    bayes_score,
    build_sig,
    extract_boots_and_core,
    pick_best_build,
    pick_best_role,
    top_builds_for_role,
    wilson_lower_bound,
)
from calc_core.calculators.match_summary import (
    MatchRow,
    ProfileSummary,
    derive_dd_version,
    kda,
    match_row_for,
    pick_ranked,
    summarize_matches,
)

__all__ = [
    "MetaRoleEntry",
    "bayes_score",
    "build_sig",
    "extract_boots_and_core",
    "pick_best_build",
    "pick_best_role",
    "top_builds_for_role",
    "wilson_lower_bound",
    "MatchRow",
    "ProfileSummary",
    "derive_dd_version",
    "kda",
    "match_row_for",
    "pick_ranked",
    "summarize_matches",
]
