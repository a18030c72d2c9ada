from .mapper import (
    actor_template_from_spec,
    encounter_config_from_spec,
)

__all__ = [
    "actor_template_from_spec",
    "encounter_config_from_spec",
]
