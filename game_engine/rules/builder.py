"""Builder: block placement, support, destruction, chains."""
from config.game_schema import RuleDef
from game_engine.rules.base import BaseRuleBundle


class BuilderRules(BaseRuleBundle):
    verb = "build"
    display_name = "Builder"
    description = "Placing blocks spawns them; good placements and chains score"

    def build_rules(self) -> list[RuleDef]:
        return [
            RuleDef(trigger="player_place_block", action="create_block", effect="spawn:block"),
            RuleDef(trigger="block_supports_player", action="valid_placement", effect="score+1"),
            RuleDef(trigger="enemy_hit_block", action="destroy_block", effect="spawn:particle_burst"),
            RuleDef(trigger="player_reach_goal", action="complete_level", effect="level+1"),
            RuleDef(trigger="block_chain_complete", action="chain_bonus", effect="score+5"),
        ]
