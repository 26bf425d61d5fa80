"""AI scoring of venues for a user, adjusted by learned weights."""
