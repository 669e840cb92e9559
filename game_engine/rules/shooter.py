"""Shooter: bullet hits, enemy fire, kill streaks."""
from config.game_schema import RuleDef
from game_engine.rules.base import BaseRuleBundle


class ShooterRules(BaseRuleBundle):
    verb = "shoot"
    display_name = "Shooter"
    description = "Bullets score on hit; enemy fire hurts; streaks pay a bonus"

    def build_rules(self) -> list[RuleDef]:
        return [
            RuleDef(trigger="bullet_hit_enemy", action="kill_enemy_and_score", effect="score+3"),
            RuleDef(trigger="bullet_hit_enemy", action="destroy_enemy", effect="spawn:particle_burst"),
            RuleDef(trigger="enemy_bullet_hit_player", condition="health>0",
                    action="damage_player", effect="health-1"),
            RuleDef(trigger="enemy_touch_player", condition="health>0",
                    action="damage_player", effect="health-1"),
            RuleDef(trigger="kill_streak_5", action="bonus_score", effect="score+10"),
            RuleDef(trigger="player_shoot", action="spawn_bullet", effect="spawn:player_bullet"),
        ]
