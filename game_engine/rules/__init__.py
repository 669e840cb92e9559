"""
SEEDFORGE - Rule Set Composer

Merges the verb-specific rule bundles into one de-duplicated rule set.
The platformer bundle is the baseline and is always included; the verb
bundles follow in registry order, whatever order the verbs were chosen in.

Usage:
    from game_engine.rules import get_combined_rules, get_rule_bundle
    rules = get_combined_rules(["shoot", "collect"])
    bundle = get_rule_bundle("dodge")
"""

from config.game_schema import CoreVerb, RuleDef
from game_engine.rules.platformer import PlatformerRules
from game_engine.rules.shooter import ShooterRules
from game_engine.rules.collector import CollectorRules
from game_engine.rules.dodger import DodgerRules
from game_engine.rules.builder import BuilderRules

BASELINE_BUNDLE = "platformer"

RULE_BUNDLES = {
    "platformer": PlatformerRules,
    "shoot": ShooterRules,
    "collect": CollectorRules,
    "dodge": DodgerRules,
    "build": BuilderRules,
}

# Verbs that contribute a bundle of their own
RULE_VERBS = [name for name in RULE_BUNDLES if name != BASELINE_BUNDLE]


def _verb_name(verb) -> str:
    if isinstance(verb, CoreVerb):
        return verb.value
    return str(verb).lower()


def get_rule_bundle(verb):
    """Get the rule bundle for a verb (or the platformer baseline)."""
    cls = RULE_BUNDLES.get(_verb_name(verb))
    if cls is None:
        raise ValueError(f"Unknown rule bundle: {verb}. Available: {list(RULE_BUNDLES)}")
    return cls()


def get_combined_rules(verbs) -> list[RuleDef]:
    """Baseline plus each selected verb's bundle, deduplicated by (trigger, action, effect)."""
    selected = {_verb_name(v) for v in (verbs or [])}

    all_rules = list(RULE_BUNDLES[BASELINE_BUNDLE]().build_rules())
    for name in RULE_VERBS:
        if name in selected:
            all_rules.extend(RULE_BUNDLES[name]().build_rules())

    seen = set()
    combined = []
    for rule in all_rules:
        key = rule.dedup_key()
        if key not in seen:
            seen.add(key)
            combined.append(rule)
    return combined
