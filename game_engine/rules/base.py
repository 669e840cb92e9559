"""
SEEDFORGE - Base Rule Bundle

Abstract base for the verb-specific rule bundles the composer merges.
"""

from abc import ABC, abstractmethod

from config.game_schema import RuleDef


class BaseRuleBundle(ABC):
    """A fixed group of rules contributed by one verb (or the baseline)."""

    verb: str = "base"
    display_name: str = "Base Rules"
    description: str = ""

    @abstractmethod
    def build_rules(self) -> list[RuleDef]:
        """Return a fresh list of this bundle's rules."""
        ...

    def triggers(self) -> list[str]:
        seen = []
        for rule in self.build_rules():
            if rule.trigger not in seen:
                seen.append(rule.trigger)
        return seen

    def get_metadata(self) -> dict:
        """Bundle metadata for authoring tools and the CLI."""
        return {
            "verb": self.verb,
            "display_name": self.display_name,
            "description": self.description,
            "rule_count": len(self.build_rules()),
            "triggers": self.triggers(),
        }
