"""Dodger: dodges, near misses, survival bonuses, dash invincibility."""
from config.game_schema import RuleDef
from game_engine.rules.base import BaseRuleBundle


class DodgerRules(BaseRuleBundle):
    verb = "dodge"
    display_name = "Dodger"
    description = "Avoiding danger scores; surviving pays a bonus"

    def build_rules(self) -> list[RuleDef]:
        return [
            RuleDef(trigger="player_dodge_enemy", action="dodge_score", effect="score+2"),
            RuleDef(trigger="enemy_touch_player", condition="health>0",
                    action="damage_player", effect="health-1"),
            RuleDef(trigger="near_miss", action="near_miss_bonus", effect="score+3"),
            RuleDef(trigger="survive_10s", action="survival_bonus", effect="score+5"),
            RuleDef(trigger="player_dash", action="trigger_invincibility", effect="flag=invincible"),
        ]
