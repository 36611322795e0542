"""Service layer helpers (settings, LINE gateways, publish relay)."""
