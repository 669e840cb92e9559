"""
SEEDFORGE - Game Validation

Design-time checks on a generated game. Problems are warnings, softer
quality notes are suggestions, and only warnings make a game invalid.

Meaningful play: every player verb should be both discernible (some rule
reacts to it) and integrated (it feeds score or progression).

Difficulty: the curve should start accessible, span a real range, give the
player a dip now and then, and never jump up too sharply in one step.
"""

from config.game_schema import CoreVerb, GeneratedGame, ValidationSummary
from game_engine.rules.interpreter import lint_rules

ValidationResult = ValidationSummary

# Words in a rule's trigger, action or condition that tie it to a verb
VERB_KEYWORDS = {
    CoreVerb.JUMP: ["jump", "stomp", "fall", "land", "goal"],
    CoreVerb.SHOOT: ["shoot", "bullet", "projectile", "kill"],
    CoreVerb.COLLECT: ["collect", "coin", "item", "powerup", "key"],
    CoreVerb.DODGE: ["dodge", "near_miss", "survive", "dash"],
    CoreVerb.BUILD: ["build", "block", "place", "chain"],
    CoreVerb.EXPLORE: ["explore", "discover", "area", "map"],
    CoreVerb.PUSH: ["push", "crate", "boulder"],
    CoreVerb.ACTIVATE: ["activate", "switch", "lever", "trigger"],
    CoreVerb.CRAFT: ["craft", "recipe", "material"],
    CoreVerb.DEFEND: ["defend", "wave", "shield", "base"],
    CoreVerb.DASH: ["dash", "boost", "speed"],
}

PROGRESSION_KEYWORDS = ["level", "unlock", "progress", "advance", "next", "complete", "win", "stage"]


def _rule_text(rule) -> str:
    return " ".join(filter(None, [rule.trigger, rule.action, rule.condition])).lower()


def _mentions_verb(rule, verb: CoreVerb) -> bool:
    text = _rule_text(rule)
    return any(kw in text for kw in VERB_KEYWORDS.get(verb, [verb.value]))


def validate_meaningful_play(game: GeneratedGame) -> ValidationResult:
    warnings = []
    suggestions = []
    rules = list(game.rules)

    # Discernible: each verb should have at least one rule reacting to it
    for verb in game.verbs:
        if not any(_mentions_verb(r, verb) for r in rules):
            warnings.append(
                f'Verb "{verb.value}" has no rule reacting to it. '
                f'The player will press the button and nothing will happen.')

    # Integrated: at least one verb should move the score
    scoring = [r for r in rules if r.effect.lower().startswith("score")]
    if not any(_mentions_verb(r, v) for r in scoring for v in game.verbs):
        warnings.append(
            "No scoring rule is linked to any player verb. "
            "Actions will feel pointless because they do not affect the score.")

    if not any(kw in f"{r.action} {r.effect}".lower() for r in rules for kw in PROGRESSION_KEYWORDS):
        suggestions.append(
            "No rule connects to a progression mechanic (level advance, unlock, etc.). "
            "The game may lack a sense of forward motion.")

    loops = game.feedback_loops
    if not loops.positive and not loops.negative:
        suggestions.append(
            "No feedback loops defined. Adding at least one positive and one negative loop "
            "improves the feeling that actions have consequences.")

    for problem in lint_rules(rules):
        suggestions.append(
            f"Rule {problem.kind} {problem.text!r} is not in the rule language "
            f"and will be {'treated as always true' if problem.kind == 'condition' else 'passed through as a custom signal'}.")

    return ValidationResult(valid=not warnings, warnings=warnings, suggestions=suggestions)


# ═══════════════════════════════════════════════════════════════
# Difficulty Curve
# ═══════════════════════════════════════════════════════════════

MAX_INITIAL_DIFFICULTY = 0.4    # first point must not exceed this
MIN_CURVE_RANGE = 0.15          # max - min below this feels flat
MAX_MONOTONE_RUN = 5            # longest strictly increasing run before a dip is suggested
MAX_SINGLE_STEP = 0.35          # steepest comfortable step up
MIN_POINTS_FOR_DIP = 5


def _longest_increasing_run(curve: list[float]) -> int:
    if len(curve) < 2:
        return 0
    longest = current = 1
    for prev, value in zip(curve, curve[1:]):
        current = current + 1 if value > prev else 1
        longest = max(longest, current)
    return longest


def validate_difficulty(game: GeneratedGame) -> ValidationResult:
    """Same result shape as validate_meaningful_play, for `game.difficulty.curve`."""
    curve = list(game.difficulty.curve)
    warnings = []
    suggestions = []

    if not curve:
        warnings.append("Difficulty curve is empty. The game has no difficulty progression at all.")
        return ValidationResult(valid=False, warnings=warnings, suggestions=suggestions)

    if len(curve) < 3:
        suggestions.append(
            f"Difficulty curve has only {len(curve)} point(s). "
            f"Consider at least 5 points for a meaningful progression arc.")

    if curve[0] > MAX_INITIAL_DIFFICULTY:
        warnings.append(
            f"Initial difficulty is {curve[0]:.2f}, above the accessibility threshold of "
            f"{MAX_INITIAL_DIFFICULTY}. New players may feel overwhelmed.")

    spread = max(curve) - min(curve)
    if spread < MIN_CURVE_RANGE:
        warnings.append(
            f"Difficulty curve range is only {spread:.2f}. "
            f"A range below {MIN_CURVE_RANGE} feels flat and boring.")

    run = _longest_increasing_run(curve)
    if run > MAX_MONOTONE_RUN:
        suggestions.append(
            f"The curve has a run of {run} consecutively increasing levels. "
            f"Consider inserting a dip or plateau to let the player recover.")

    if len(curve) >= MIN_POINTS_FOR_DIP and not any(b < a for a, b in zip(curve, curve[1:])):
        warnings.append(
            'The difficulty curve never decreases. Players need occasional "breathing rooms" '
            'where pressure eases before climbing again.')

    steepest = max([b - a for a, b in zip(curve, curve[1:])] + [0.0])
    if steepest > MAX_SINGLE_STEP:
        suggestions.append(
            f"The largest single-step difficulty increase is {steepest:.2f}. "
            f"Steps above {MAX_SINGLE_STEP} can feel like hitting a wall.")

    return ValidationResult(valid=not warnings, warnings=warnings, suggestions=suggestions)


def merge_results(*results: ValidationResult) -> ValidationResult:
    warnings = [w for r in results for w in r.warnings]
    suggestions = [s for r in results for s in r.suggestions]
    return ValidationResult(valid=not warnings, warnings=warnings, suggestions=suggestions)
