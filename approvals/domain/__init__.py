"""Domain layer: approval enums, entities (state machine), events, exceptions."""
