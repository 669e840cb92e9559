"""Collector: items, power-ups, keys, healing, level completion."""
from config.game_schema import RuleDef
from game_engine.rules.base import BaseRuleBundle


class CollectorRules(BaseRuleBundle):
    verb = "collect"
    display_name = "Collector"
    description = "Items score; power-ups and keys set flags; collecting everything clears the level"

    def build_rules(self) -> list[RuleDef]:
        return [
            RuleDef(trigger="player_collect_item", action="add_score", effect="score+1"),
            RuleDef(trigger="player_collect_powerup", action="apply_powerup", effect="flag=powerup_active"),
            RuleDef(trigger="player_collect_key", action="unlock_gate", effect="flag=key_collected"),
            RuleDef(trigger="all_items_collected", action="complete_level", effect="level+1"),
            RuleDef(trigger="player_collect_health", action="heal_player", effect="health+1"),
            RuleDef(trigger="enemy_touch_player", condition="health>0",
                    action="damage_player", effect="health-1"),
        ]
