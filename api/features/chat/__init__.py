"""Chat feature: relays one user turn to the completion provider and streams the reply."""
