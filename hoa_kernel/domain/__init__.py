"""Pure domain layer: clock, DTOs, validation and entry numbering. No I/O."""
