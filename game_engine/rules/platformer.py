"""Platformer baseline: falling out, coins, stomping, contact damage, goal."""
from config.game_schema import RuleDef
from game_engine.rules.base import BaseRuleBundle


class PlatformerRules(BaseRuleBundle):
    verb = "platformer"
    display_name = "Platformer Basics"
    description = "Universal movement mechanics, always included"

    def build_rules(self) -> list[RuleDef]:
        return [
            RuleDef(trigger="player_fall_out", action="damage_player", effect="health-1"),
            RuleDef(trigger="player_collect_coin", action="add_score", effect="score+1"),
            RuleDef(trigger="player_stomp_enemy", action="kill_enemy_and_score", effect="score+2"),
            RuleDef(trigger="player_stomp_enemy", action="destroy_enemy", effect="spawn:particle_burst"),
            RuleDef(trigger="enemy_touch_player", condition="health>0",
                    action="damage_player", effect="health-1"),
            RuleDef(trigger="player_reach_goal", action="complete_level", effect="level+1"),
        ]
