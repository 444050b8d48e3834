"""
Game rule configuration and validation.
"""

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules and room timing."""

    min_players: int = Field(
        default=2,
        ge=2,
        le=9,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=9,
        ge=2,
        le=9,
        description="Maximum number of seated players"
    )
    suggest_bots_below: int = Field(
        default=4,
        ge=0,
        le=9,
        description="Offer to fill with bots when fewer players are seated"
    )
    default_target_score: int = Field(
        default=50,
        ge=1,
        description="Target score used when a room does not pick one"
    )
    point_scale: str = Field(
        default="standard",
        description="Card point scale: 'standard' (5/15/25) or 'compact' (1/2-3/5)"
    )
    declaration_escape: bool = Field(
        default=False,
        description="Also accept the other attribute of the card under a power card after a declaration"
    )
    require_draw_before_pass: bool = Field(
        default=True,
        description="A player must draw before passing"
    )
    hand_size_base: int = Field(default=10, ge=1)
    min_hand_size: int = Field(default=3, ge=1)
    max_hand_size: int = Field(default=7, ge=1)
    match_window_seconds: float = Field(
        default=1.5,
        ge=0,
        description="Length of the out-of-turn match window"
    )
    bot_first_action_delay: float = Field(
        default=15.0,
        ge=0,
        description="Pause before a bot starts its turn"
    )
    bot_chain_delay: float = Field(
        default=0.4,
        ge=0,
        description="Pause between chained bot actions (declaration after a power card)"
    )
    bot_draw_delay: float = Field(
        default=1.5,
        ge=0,
        description="Pause after a forced bot draw"
    )
    reconnect_grace_seconds: float = Field(
        default=90,
        ge=0,
        description="Seconds a disconnected player keeps their seat"
    )

    @field_validator('point_scale')
    @classmethod
    def validate_point_scale(cls, v):
        """Only known point scales are accepted."""
        from .constants import POINT_SCALES
        if v not in POINT_SCALES:
            raise ValueError(f'unknown point_scale {v!r} (expected one of {sorted(POINT_SCALES)})')
        return v

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    @field_validator('max_hand_size')
    @classmethod
    def validate_hand_size(cls, v, info):
        min_hand = info.data.get('min_hand_size', 3)
        if v < min_hand:
            raise ValueError(f'max_hand_size ({v}) must be >= min_hand_size ({min_hand})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    def hand_size(self, player_count: int) -> int:
        """Cards dealt to each player for a round."""
        return max(self.min_hand_size, min(self.max_hand_size, self.hand_size_base - player_count))

    def card_points(self) -> dict:
        """Point table for the configured scale."""
        from .constants import POINT_SCALES
        return dict(POINT_SCALES[self.point_scale])


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
